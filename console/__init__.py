"""
Terminal front end for the lead qualification bot.

Runs qualification chats, reclassification and CSV export against the
configured session store.
"""
