"""
Local converters for the converter web API.

Each converter takes an uploaded file and the conversion options and returns
a ConversionResponse, raising ConversionError when it cannot finish.
"""

from .factory import ConverterFactory, get_converter_factory

__all__ = ['ConverterFactory', 'get_converter_factory']
