class NewsroomError(Exception):
    """Base class for edition pipeline errors."""


class SourceError(NewsroomError):
    """A repository source request failed after its retry budget."""


class BackendError(NewsroomError):
    """The text backend failed after its retry budget."""


class NoFrontPageLeadError(NewsroomError):
    """The front page produced no lead story, so there is no edition."""


class ContentValidationError(NewsroomError):
    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "content validation failed")
