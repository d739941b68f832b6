"""ASGI middleware"""
