"""
Sentiment Index HTTP API.

FastAPI application exposing the sentiment service and the
market data store as JSON.
"""
