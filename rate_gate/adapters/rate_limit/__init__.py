"""Rate limiting strategies.

Each strategy decides allow/deny for a key under a resolved config. The
fixed-window counter shares its state through the counting store; the local
bucket keeps per-process state and serves as the degrade-mode path.
"""
