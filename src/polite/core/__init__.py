"""Core domain package for polite.

Core contains the rule model, match modes, and mute evaluation logic without
any storage, calendar, or OS-specific code, keeping the business logic
portable.
"""
