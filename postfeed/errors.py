class PostFeedError(Exception):
    """Base class for errors raised by the post feed."""


class RepositoryQueryError(PostFeedError):
    """The content repository could not answer a query."""


class RichTextError(PostFeedError):
    """A rich-text value could not be rendered as plain text."""


class TransformError(PostFeedError):
    """A raw document could not be turned into a displayable post."""

    def __init__(self, message: str, uid: str | None = None) -> None:
        super().__init__(message)
        self.uid = uid
