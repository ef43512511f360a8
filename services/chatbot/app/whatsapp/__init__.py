"""
CFC Push Chatbot - WhatsApp Module

Twilio webhook intake and outbound delivery.
"""
