"""
API package.

HTTP surface for advisory chat, image analysis and expert escalation.
"""
