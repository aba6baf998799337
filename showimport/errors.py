class ShowImportError(Exception):
    """Base class for errors raised by the import pipeline."""


class BatchFormatError(ShowImportError):
    """The input document is neither an array of events nor a map of arrays."""


class UnknownVenueError(ShowImportError):
    def __init__(self, venue_slug: str):
        super().__init__(f"Unknown venue slug: {venue_slug}")
        self.venue_slug = venue_slug


class DateParseError(ShowImportError):
    def __init__(self, date_str: str):
        super().__init__(f"unable to parse date: {date_str}")
        self.date_str = date_str


class DuplicateEventError(ShowImportError):
    """Raised when the natural-key index rejects an insert."""

    def __init__(self, show_id: int):
        super().__init__(f"event already imported as show #{show_id}")
        self.show_id = show_id
