class RecipeHubError(Exception):
    """Base class for every failure the domain layer reports.

    ``kind`` is the machine-readable name, ``status_code`` is what the HTTP
    layer answers with.
    """

    kind = "error"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.message = message or self.kind


class Unauthenticated(RecipeHubError):
    kind = "unauthenticated"
    status_code = 401


class AccountInactive(RecipeHubError):
    kind = "account_inactive"
    status_code = 403


class NotFound(RecipeHubError):
    kind = "not_found"
    status_code = 404


class UserNotFound(NotFound):
    kind = "user_not_found"


class RecipeNotFound(NotFound):
    kind = "recipe_not_found"


class ReviewNotFound(NotFound):
    kind = "review_not_found"


class NotOwner(RecipeHubError):
    kind = "not_owner"
    status_code = 403


class SelfFollowRejected(RecipeHubError):
    kind = "self_follow_rejected"
    status_code = 409


class SelfLikeRejected(RecipeHubError):
    kind = "self_like_rejected"
    status_code = 409


class DuplicateName(RecipeHubError):
    kind = "duplicate_name"
    status_code = 409


class InvalidArgument(RecipeHubError):
    kind = "invalid_argument"
    status_code = 422


class InvalidRating(InvalidArgument):
    kind = "invalid_rating"


class InvalidDuration(InvalidArgument):
    kind = "invalid_duration"


class InvalidPageRequest(InvalidArgument):
    kind = "invalid_page_request"
