"""
CFC Push Chatbot - Sessions Module
"""
