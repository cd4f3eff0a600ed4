"""
Custom exception classes for the CSV Mapper application
"""

class CsvMapperError(Exception):
    """Base exception for CSV Mapper"""
    pass

class ValidationError(CsvMapperError):
    """Raised when input validation fails"""
    pass

class MalformedInputError(ValidationError):
    """Raised when an uploaded file cannot be turned into a table"""
    pass

class GeocodingError(CsvMapperError):
    """Raised when the geocoding service fails or answers with garbage"""
    pass

class MapGenerationError(CsvMapperError):
    """Raised during map creation or rendering errors"""
    pass
