"""
CFC Push Chatbot - Analytics Module

Daily interaction counters and the API-key protected reporting endpoints.
"""
