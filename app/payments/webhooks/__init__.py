"""
PayHere notification endpoint.

The gateway POSTs a form-encoded notification to notify_url for every
payment outcome and redelivers until it receives HTTP 200.
"""
