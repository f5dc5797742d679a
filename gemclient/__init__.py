"""
Gemini protocol client.
"""
