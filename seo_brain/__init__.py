"""
SEO Brain

Programmatic SEO content pipeline that:
1. Generates a localized landing page per city for a product campaign
2. Caches LLM text and image URLs to control cost
3. Scores published pages and extracts patterns from the top performers
4. Proposes graduated improvement plans for underperforming pages
"""

__version__ = "0.1.0"
