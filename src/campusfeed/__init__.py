"""
campusfeed - personalized campus announcements.

Scrapes organization Facebook pages, classifies posts by category,
interest and department, and serves them over a REST API.
"""

__version__ = "0.1.0"
