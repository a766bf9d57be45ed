"""
Pair matching feature package.

Keeps every layer of the pairing flow co-located: domain models, the pure
parse/resolve/validate/execute/report pipeline, the services that wire it to
Slack, and the Slack-facing router.
"""
