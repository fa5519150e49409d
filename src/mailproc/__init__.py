"""mailproc: rule-based mail delivery filter.

Reads one message, finds the first configured rule that matches it and hands
the message to that rule's actions.
"""
