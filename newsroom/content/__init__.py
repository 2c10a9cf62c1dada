"""
Newsroom - Content Package

Articles, categories, comments, polls, pages, site settings,
contact messages and the newsletter list.
"""
