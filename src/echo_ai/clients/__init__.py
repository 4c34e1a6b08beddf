"""Clients for the model providers, web search and the Discord transport."""
