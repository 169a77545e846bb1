"""
Terminal presentation layer.

Renders round snapshots as text and turns typed commands into intents.
"""
