"""Resource methods built on top of the request pipeline.

Each method validates its arguments, shapes the parameters and calls
:meth:`ConvertKitAPI.request`. Invalid arguments return a
``validation_error`` failure without sending a request, except for an
unknown webhook event, which raises :class:`InvalidWebhookEventError`.
"""

import logging
from typing import Any, Dict, Optional, Union

from .. import messages
from ..exceptions import InvalidWebhookEventError, ValidationError
from ..models.result import ApiResult, Failure, FailureKind, Success
from ..utils.security import mask_string, validate_url
from .pagination import build_pagination_params

logger = logging.getLogger(__name__)

POSTS_PER_PAGE_MAX = 50

# Webhook event name -> parameter key the event requires, if any
WEBHOOK_EVENTS: Dict[str, Optional[str]] = {
    "subscriber.subscriber_activate": None,
    "subscriber.subscriber_unsubscribe": None,
    "subscriber.subscriber_bounce": None,
    "subscriber.subscriber_complain": None,
    "subscriber.form_subscribe": "form_id",
    "subscriber.course_subscribe": "sequence_id",
    "subscriber.course_complete": "sequence_id",
    "subscriber.link_click": "initiator_value",
    "subscriber.product_purchase": "product_id",
    "subscriber.tag_add": "tag_id",
    "subscriber.tag_remove": "tag_id",
    "purchase.purchase_create": None,
    "custom_field.field_created": None,
    "custom_field.field_deleted": None,
    "custom_field.field_value_updated": "custom_field_id",
}

SUBSCRIBER_CODE_INVALID = (
    "The entered code is invalid. Please try again, or click the link sent in the email."
)


def validation_failure(message: str) -> Failure:
    logger.warning(f"API: Error: {message}")
    return Failure(kind=FailureKind.VALIDATION_ERROR, message=message)


class ResourcesMixin:
    """Account, forms, tags, webhooks and WordPress endpoint methods.

    Mixed into :class:`~convertkit_api.api.client.ConvertKitAPI`, which
    provides :meth:`request` and the HTTP verb shortcuts.
    """

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    def get_account(self) -> ApiResult:
        return self.get("account")

    # ------------------------------------------------------------------
    # Forms and tags
    # ------------------------------------------------------------------

    def get_forms(
        self,
        status: str = "active",
        include_total_count: bool = False,
        after_cursor: Optional[str] = None,
        before_cursor: Optional[str] = None,
        per_page: Optional[int] = None,
    ) -> ApiResult:
        """Get embeddable forms.

        :param status: Form status (active, archived, trashed, all)
        :type status: str
        :return: ``{"forms": [...], "pagination": {...}}``
        :rtype: ApiResult
        """
        return self.get(
            "forms",
            build_pagination_params(
                {"type": "embed", "status": status},
                after_cursor=after_cursor,
                before_cursor=before_cursor,
                per_page=per_page,
                include_total_count=include_total_count,
            ),
        )

    def get_tags(
        self,
        include_total_count: bool = False,
        after_cursor: Optional[str] = None,
        before_cursor: Optional[str] = None,
        per_page: Optional[int] = None,
    ) -> ApiResult:
        return self.get(
            "tags",
            build_pagination_params(
                after_cursor=after_cursor,
                before_cursor=before_cursor,
                per_page=per_page,
                include_total_count=include_total_count,
            ),
        )

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    def get_webhooks(
        self,
        include_total_count: bool = False,
        after_cursor: Optional[str] = None,
        before_cursor: Optional[str] = None,
        per_page: Optional[int] = None,
    ) -> ApiResult:
        return self.get(
            "webhooks",
            build_pagination_params(
                after_cursor=after_cursor,
                before_cursor=before_cursor,
                per_page=per_page,
                include_total_count=include_total_count,
            ),
        )

    def create_webhook(
        self, url: str, event: str, parameter: Optional[Union[str, int]] = None
    ) -> ApiResult:
        """Create a webhook that posts to ``url`` when ``event`` occurs.

        :param url: Target URL
        :type url: str
        :param event: Event name, e.g. ``subscriber.form_subscribe``
        :type event: str
        :param parameter: Form, sequence, tag, product or custom field ID the
            event is scoped to, or the link URL for ``subscriber.link_click``
        :type parameter: Optional[Union[str, int]]
        :return: ``{"webhook": {...}}``
        :rtype: ApiResult
        :raises InvalidWebhookEventError: If ``event`` is not a known event
        """
        if event not in WEBHOOK_EVENTS:
            raise InvalidWebhookEventError(event)

        event_params: Dict[str, Any] = {"name": event.split(".", 1)[1]}
        parameter_key = WEBHOOK_EVENTS[event]
        if parameter_key:
            event_params[parameter_key] = parameter

        return self.post("webhooks", {"target_url": url, "event": event_params})

    def delete_webhook(self, webhook_id: Union[str, int]) -> ApiResult:
        return self.delete(f"webhooks/{webhook_id}")

    # ------------------------------------------------------------------
    # WordPress endpoints
    # ------------------------------------------------------------------

    def get_posts(self, page: int = 1, per_page: int = 10) -> ApiResult:
        """Get one page of published posts (broadcasts).

        :param page: Page number, starting at 1
        :type page: int
        :param per_page: Posts per page, 1 to 50
        :type per_page: int
        :return: Response with ``posts``, ``page`` and ``total_pages``, or
            an empty list when no posts exist
        :rtype: ApiResult
        """
        page = abs(int(page))
        per_page = abs(int(per_page))
        if page < 1:
            return validation_failure(
                "get_posts(): the page parameter must be equal to or greater than 1."
            )
        if per_page < 1:
            return validation_failure(
                "get_posts(): the per_page parameter must be equal to or greater than 1."
            )
        if per_page > POSTS_PER_PAGE_MAX:
            return validation_failure(
                "get_posts(): the per_page parameter must be equal to or less than 50."
            )

        result = self.get("posts", {"page": page, "per_page": per_page})
        if not result.ok:
            return result

        posts = result.data.get("posts") if isinstance(result.data, dict) else None
        if not isinstance(posts, list):
            return Failure(
                kind=FailureKind.RESPONSE_TYPE_UNEXPECTED,
                message=messages.RESPONSE_TYPE_UNEXPECTED,
            )
        if not posts:
            logger.info("API: get_posts(): No broadcasts exist in ConvertKit.")
            return Success(data=[])
        return result

    def get_all_posts(self, posts_per_request: int = 50) -> ApiResult:
        """Get every post, walking through all pages.

        :param posts_per_request: Posts fetched per request, 1 to 50
        :type posts_per_request: int
        :return: Posts keyed by post ID
        :rtype: ApiResult
        """
        posts_per_request = abs(int(posts_per_request))
        if posts_per_request < 1:
            return validation_failure(
                "get_all_posts(): the posts_per_request parameter must be equal to or greater than 1."
            )
        if posts_per_request > POSTS_PER_PAGE_MAX:
            return validation_failure(
                "get_all_posts(): the posts_per_request parameter must be equal to or less than 50."
            )

        posts: Dict[Any, Dict[str, Any]] = {}
        page, total_pages = 0, 1
        while total_pages >= page + 1:
            result = self.get_posts(page + 1, posts_per_request)
            if not result.ok:
                return result
            if not result.data:
                break

            for post in result.data["posts"]:
                posts[post["id"]] = post
            page = int(result.data.get("page", page + 1))
            total_pages = int(result.data.get("total_pages", page))

        return Success(data=posts)

    def get_post(self, post_id: Union[str, int]) -> ApiResult:
        result = self.get(f"posts/{post_id}")
        if not result.ok:
            return result
        if not isinstance(result.data, dict):
            return Failure(
                kind=FailureKind.RESPONSE_TYPE_UNEXPECTED,
                message=messages.RESPONSE_TYPE_UNEXPECTED,
            )
        if "message" in result.data:
            return Failure(kind=FailureKind.CLIENT_ERROR, message=str(result.data["message"]))
        return Success(data=result.data.get("post"))

    def get_products(self) -> ApiResult:
        return self.get("products")

    def subscriber_authentication_send_code(
        self, email: str, redirect_url: str
    ) -> ApiResult:
        """Email a sign-in link to a subscriber.

        :param email: Subscriber email address
        :type email: str
        :param redirect_url: Where the link in the email redirects to
        :type redirect_url: str
        :return: Token to pass to :meth:`subscriber_authentication_verify`
        :rtype: ApiResult
        """
        email = (email or "").strip()
        redirect_url = (redirect_url or "").strip()
        if not email:
            return validation_failure(
                "subscriber_authentication_send_code(): the email parameter is empty."
            )
        if not redirect_url:
            return validation_failure(
                "subscriber_authentication_send_code(): the redirect_url parameter is empty."
            )
        try:
            validate_url(redirect_url)
        except ValidationError:
            return validation_failure(
                "subscriber_authentication_send_code(): the redirect_url parameter is not a valid URL."
            )

        result = self.post(
            "subscriber_authentication/send_code",
            {"email_address": email, "redirect_url": redirect_url},
        )
        if not result.ok:
            return result
        if not isinstance(result.data, dict) or "token" not in result.data:
            return Failure(
                kind=FailureKind.RESPONSE_TYPE_UNEXPECTED,
                message="subscriber_authentication_send_code(): the token parameter is missing from the API response.",
            )
        return Success(data=result.data["token"])

    def subscriber_authentication_verify(
        self, token: str, subscriber_code: str
    ) -> ApiResult:
        """Exchange the emailed code for a signed subscriber ID.

        Any API failure is reported with a single user facing message.

        :return: Signed subscriber ID, valid for use with :meth:`profile`
        :rtype: ApiResult
        """
        logger.debug(
            f"API: subscriber_authentication_verify(): [ token: {mask_string(token or '')}, "
            f"subscriber_code: {mask_string(subscriber_code or '')} ]"
        )
        token = (token or "").strip()
        subscriber_code = (subscriber_code or "").strip()
        if not token:
            return validation_failure(
                "subscriber_authentication_verify(): the token parameter is empty."
            )
        if not subscriber_code:
            return validation_failure(
                "subscriber_authentication_verify(): the subscriber_code parameter is empty."
            )

        result = self.post(
            "subscriber_authentication/verify",
            {"token": token, "subscriber_code": subscriber_code},
        )
        if not result.ok:
            return Failure(
                kind=result.kind,
                message=SUBSCRIBER_CODE_INVALID,
                status_code=result.status_code,
            )
        if not isinstance(result.data, dict) or "subscriber_id" not in result.data:
            return Failure(
                kind=FailureKind.RESPONSE_TYPE_UNEXPECTED, message=SUBSCRIBER_CODE_INVALID
            )
        return Success(data=result.data["subscriber_id"])

    def profile(self, signed_subscriber_id: str) -> ApiResult:
        """Get the subscriber ID and purchased products for a signed subscriber ID."""
        signed_subscriber_id = (signed_subscriber_id or "").strip()
        if not signed_subscriber_id:
            return validation_failure(
                "profile(): the signed_subscriber_id parameter is empty."
            )

        result = self.get(f"profile/{signed_subscriber_id}")
        if not result.ok:
            return result
        if isinstance(result.data, dict) and "message" in result.data:
            return Failure(kind=FailureKind.CLIENT_ERROR, message=str(result.data["message"]))
        return result
