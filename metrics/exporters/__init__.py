"""Exposition writer and downstream delivery"""
from .prometheus import ExpositionWriter, format_value
from .forwarder import DeliveryResult, HTTPForwarder

__all__ = [
    'ExpositionWriter',
    'format_value',
    'DeliveryResult',
    'HTTPForwarder'
]
