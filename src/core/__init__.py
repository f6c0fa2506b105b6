"""Core domain package for the guestbook.

Core contains posting gates, content validation, reply resolution, and feed
composition without any storage- or UI-specific code, keeping the business
logic portable.
"""
