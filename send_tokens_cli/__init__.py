"""
Command-line interface for send-tokens.
"""
