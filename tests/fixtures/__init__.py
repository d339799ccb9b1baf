"""Shared fixtures and canned JIRA payloads."""
