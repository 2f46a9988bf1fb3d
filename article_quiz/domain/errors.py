"""Error taxonomy for the quiz core.

Each component raises only its own family, so callers can catch a whole
family (``except GenerationError``) or one variant.
"""


class QuizCoreError(Exception):
    """Base class for every error raised by the quiz core."""


# --- generation ---

class GenerationError(QuizCoreError):
    pass


class GenerationNetworkError(GenerationError):
    """Transport failure, timeout or non-success status from the completion endpoint."""


class InvalidResponseError(GenerationError):
    """The endpoint answered but the envelope or message content is unusable."""


class SchemaViolationError(GenerationError):
    """The content parsed as JSON but breaks the question/option/answer contract."""


# --- repository ---

class RepositoryError(QuizCoreError):
    pass


class NotFoundError(RepositoryError):
    pass


class EncodingError(RepositoryError):
    pass


class DecodingError(RepositoryError):
    pass


class StoreNetworkError(RepositoryError):
    pass


# --- session ---

class SessionError(QuizCoreError):
    pass


class NoActiveQuizError(SessionError):
    pass


class NoSelectionError(SessionError):
    pass


class QuestionIndexOutOfRangeError(SessionError):
    pass


class InvalidSelectionError(SessionError):
    pass


class SessionCompletedError(SessionError):
    pass


class QuizLoadError(SessionError):
    """Loading or generating the quiz failed; the cause is chained."""


class SessionBusyError(SessionError):
    """Another request holds the session's lock."""
