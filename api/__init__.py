"""
AutoScrape REST API package.
"""
