"""Core domain package for mailproc.

Core contains rule configuration, matching, filtering and validation without
any subprocess or MIME-parsing code, keeping the business logic portable.
"""
