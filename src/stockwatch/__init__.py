"""
StockWatch - Fish stocking report tracker and push notifier.

Polls state wildlife agency stocking reports, normalizes them into
stocking events, stores what is new, and pushes alerts to anglers
whose subscriptions match.
"""

__version__ = "0.1.0"
__app_name__ = "stockwatch"
