"""Pydantic schemas for request/response validation.

Sub-modules:
    scraping — ScrapeRequest, BulkScrapeRequest and their response envelopes
"""
