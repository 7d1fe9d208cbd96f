"""
Twitter Service Module

This module handles integration with the Twitter/X API.
It provides functionality for authenticating with Twitter and reading the
authenticated user's favorites one page at a time.
"""

import webbrowser
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

import tweepy
from dotenv import set_key

from config import settings
from data.models import FeedPage, FeedPost, RateLimitInfo
from utils.exceptions import AuthenticationError, FeedAccessError, RateLimitError
from utils.logger import get_logger

logger = get_logger(__name__)


class TwitterService:
    """Service for reading favorites from Twitter/X (API v1.1)."""

    def __init__(self, api_key: Optional[str] = None, api_key_secret: Optional[str] = None,
                 access_token: Optional[str] = None, access_token_secret: Optional[str] = None,
                 client: Optional[Any] = None, interactive: bool = False,
                 env_file: Optional[str] = None):
        """
        Initialize the Twitter service with API authentication.

        Args:
            api_key: Consumer key, defaults to settings.TWITTER_API_KEY
            api_key_secret: Consumer secret, defaults to settings.TWITTER_API_KEY_SECRET
            access_token: Access token, defaults to settings.TWITTER_ACCESS_TOKEN
            access_token_secret: Access token secret, defaults to settings.TWITTER_ACCESS_TOKEN_SECRET
            client: An already authenticated tweepy.API (skips authentication)
            interactive: Allow the PIN flow when no access token is configured
            env_file: Where newly obtained access tokens are saved, defaults to settings.ENV_FILE
        """
        self.api_key = api_key if api_key is not None else settings.TWITTER_API_KEY
        self.api_key_secret = api_key_secret if api_key_secret is not None else settings.TWITTER_API_KEY_SECRET
        self.access_token = access_token if access_token is not None else settings.TWITTER_ACCESS_TOKEN
        self.access_token_secret = (access_token_secret if access_token_secret is not None
                                    else settings.TWITTER_ACCESS_TOKEN_SECRET)
        self.interactive = interactive
        self.env_file = env_file or settings.ENV_FILE
        self.screen_name = None
        self.client = client

        # Set up Twitter client
        if self.client is None:
            self._setup_twitter()

    def _setup_twitter(self) -> None:
        """
        Set up Twitter API authentication using Tweepy OAuth 1.0a.

        Raises:
            AuthenticationError: If credentials are missing or rejected.
        """
        if not self.api_key or not self.api_key_secret:
            raise AuthenticationError("Twitter consumer key and secret are required")

        if not self.access_token or not self.access_token_secret:
            if not self.interactive:
                raise AuthenticationError("No Twitter access token configured and PIN authorization "
                                          "is not possible in non-interactive mode")
            self._authorize_with_pin()

        try:
            auth = tweepy.OAuth1UserHandler(
                self.api_key,
                self.api_key_secret,
                self.access_token,
                self.access_token_secret
            )
            self.client = tweepy.API(auth)
            # Verify credentials
            user = self.client.verify_credentials()
        except tweepy.TweepyException as e:
            logger.error(f"Failed to authenticate with Twitter: {e}")
            raise AuthenticationError(f"Failed to authenticate with Twitter: {e}") from e

        self.screen_name = getattr(user, 'screen_name', None)
        logger.info(f"Successfully authenticated with Twitter API as @{self.screen_name}")

    def _authorize_with_pin(self) -> None:
        """
        Obtain access tokens through the PIN-based OAuth flow and save them to the .env file.

        Raises:
            AuthenticationError: If the authorization fails.
        """
        try:
            handler = tweepy.OAuth1UserHandler(self.api_key, self.api_key_secret, callback="oob")
            authorization_url = handler.get_authorization_url()

            logger.info(f"Authorize FavoImgs in your browser: {authorization_url}")
            webbrowser.open(authorization_url)

            pin = input("ENTER PIN: ").strip()
            self.access_token, self.access_token_secret = handler.get_access_token(pin)
        except tweepy.TweepyException as e:
            logger.error(f"PIN authorization failed: {e}")
            raise AuthenticationError(f"PIN authorization failed: {e}") from e

        set_key(self.env_file, "TWITTER_ACCESS_TOKEN", self.access_token)
        set_key(self.env_file, "TWITTER_ACCESS_TOKEN_SECRET", self.access_token_secret)
        logger.info(f"Saved Twitter access token to {self.env_file}")

    def list_favorites(self, before_id: Optional[int], count: int) -> FeedPage:
        """
        Fetch one page of the authenticated user's favorites, newest first.

        Args:
            before_id: Passed as max_id (inclusive), or None for the newest favorites
            count: Maximum number of favorites to return

        Returns:
            FeedPage: The posts and the remaining-quota counters.

        Raises:
            RateLimitError: If Twitter answers with HTTP 429.
            AuthenticationError: If the credentials were revoked.
            FeedAccessError: For any other API failure.
        """
        params: Dict[str, Any] = {
            "count": count,
            "include_entities": True,
            "tweet_mode": "extended",
        }
        if before_id is not None:
            params["max_id"] = before_id

        try:
            statuses = self.client.get_favorites(**params)
        except tweepy.TooManyRequests as e:
            info = self._rate_limit_info(getattr(e, 'response', None))
            raise RateLimitError("Twitter API rate limit exceeded",
                                 reset_at=info.reset_at if info else None) from e
        except (tweepy.Unauthorized, tweepy.Forbidden) as e:
            logger.error(f"Twitter rejected the credentials: {e}")
            raise AuthenticationError(f"Twitter rejected the credentials: {e}") from e
        except tweepy.TweepyException as e:
            logger.error(f"Error fetching favorites: {e}")
            raise FeedAccessError(f"Error fetching favorites: {e}") from e

        posts = [self._to_feed_post(status) for status in statuses]
        rate_limit = self._rate_limit_info(getattr(self.client, 'last_response', None))
        return FeedPage(posts=posts, rate_limit=rate_limit)

    def _to_feed_post(self, status: Any) -> FeedPost:
        """
        Normalize a tweepy Status into a FeedPost.

        Args:
            status: The tweepy Status object

        Returns:
            FeedPost: The normalized post
        """
        # Get the full tweet text
        text = getattr(status, 'full_text', None) or getattr(status, 'text', '') or ''

        # Native attachments live in extended_entities, which is absent when there are none
        media = None
        extended_entities = getattr(status, 'extended_entities', None) or {}
        if extended_entities.get('media'):
            media = [
                item.get('media_url_https') or item.get('media_url')
                for item in extended_entities['media']
                if item.get('media_url_https') or item.get('media_url')
            ]

        links: List[str] = []
        entities = getattr(status, 'entities', None) or {}
        for url_entity in entities.get('urls', []):
            url = url_entity.get('expanded_url') or url_entity.get('url')
            if url:
                links.append(url)

        user = status.user
        return FeedPost(
            id=status.id,
            created_at=status.created_at,
            author_id=user.id,
            author_screen_name=user.screen_name,
            author_name=getattr(user, 'name', None),
            text=text,
            media=media,
            links=links,
        )

    @staticmethod
    def _rate_limit_info(response: Any) -> Optional[RateLimitInfo]:
        """
        Read the x-rate-limit-* headers of an API response.

        Args:
            response: A requests.Response, or None

        Returns:
            Optional[RateLimitInfo]: The counters, or None when the headers are missing
        """
        headers = getattr(response, 'headers', None)
        if not headers or 'x-rate-limit-remaining' not in headers:
            return None

        def _int(name: str) -> Optional[int]:
            try:
                return int(headers.get(name))
            except (TypeError, ValueError):
                return None

        reset = _int('x-rate-limit-reset')
        return RateLimitInfo(
            limit=_int('x-rate-limit-limit'),
            remaining=_int('x-rate-limit-remaining'),
            reset_at=datetime.fromtimestamp(reset, tz=timezone.utc) if reset is not None else None,
        )
