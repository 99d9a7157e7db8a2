"""
USCCB scraping.

The extractor turns one readings page into an Entry; the client fetches the
page for a date (following at most one holiday redirect) and hands it over.
Neither touches the database.
"""
