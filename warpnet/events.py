"""Wire models exchanged between the UI client and nodes, and the route paths."""

import dataclasses
import json
import re
import types
import typing
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional

ID = str

ACCEPTED = '{"code":0,"message":"Accepted"}'

# admin
PUBLIC_POST_NODE_VERIFY = "/public/post/admin/verifynode/0.0.0"
PRIVATE_POST_PAIR = "/private/post/admin/pair/0.0.0"
PRIVATE_GET_STATS = "/private/get/admin/stats/0.0.0"
# application
PRIVATE_DELETE_CHAT = "/private/delete/chat/0.0.0"
PRIVATE_DELETE_MESSAGE = "/private/delete/message/0.0.0"
PRIVATE_DELETE_TWEET = "/private/delete/tweet/0.0.0"
PRIVATE_GET_CHAT = "/private/get/chat/0.0.0"
PRIVATE_GET_CHATS = "/private/get/chats/0.0.0"
PRIVATE_GET_MESSAGE = "/private/get/message/0.0.0"
PRIVATE_GET_MESSAGES = "/private/get/messages/0.0.0"
PRIVATE_GET_TIMELINE = "/private/get/timeline/0.0.0"
PRIVATE_POST_LOGIN = "/private/post/login/0.0.0"
PRIVATE_POST_LOGOUT = "/private/post/logout/0.0.0"
PRIVATE_POST_TWEET = "/private/post/tweet/0.0.0"
PRIVATE_POST_USER = "/private/post/user/0.0.0"
PUBLIC_DELETE_REPLY = "/public/delete/reply/0.0.0"
PUBLIC_GET_FOLLOWEES = "/public/get/followees/0.0.0"
PUBLIC_GET_FOLLOWERS = "/public/get/followers/0.0.0"
PUBLIC_GET_INFO = "/public/get/info/0.0.0"
PRIVATE_POST_RESET = "/private/post/reset/0.0.0"
PUBLIC_GET_REPLIES = "/public/get/replies/0.0.0"
PUBLIC_GET_REPLY = "/public/get/reply/0.0.0"
PUBLIC_GET_TWEET = "/public/get/tweet/0.0.0"
PUBLIC_GET_TWEET_STATS = "/public/get/tweetstats/0.0.0"
PUBLIC_GET_TWEETS = "/public/get/tweets/0.0.0"
PUBLIC_GET_USER = "/public/get/user/0.0.0"
PUBLIC_GET_USERS = "/public/get/users/0.0.0"
PUBLIC_POST_CHAT = "/public/post/chat/0.0.0"
PUBLIC_POST_FOLLOW = "/public/post/follow/0.0.0"
PUBLIC_POST_LIKE = "/public/post/like/0.0.0"
PUBLIC_POST_MESSAGE = "/public/post/message/0.0.0"
PUBLIC_POST_REPLY = "/public/post/reply/0.0.0"
PUBLIC_POST_RETWEET = "/public/post/retweet/0.0.0"
PUBLIC_POST_UNFOLLOW = "/public/post/unfollow/0.0.0"
PUBLIC_POST_UNLIKE = "/public/post/unlike/0.0.0"
PUBLIC_POST_UNRETWEET = "/public/post/unretweet/0.0.0"
PRIVATE_POST_UPLOAD_IMAGE = "/private/post/image/0.0.0"
PUBLIC_GET_IMAGE = "/public/get/image/0.0.0"

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_UINT64_MAX = 2**64 - 1

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_HTML_RE = re.compile("[<>&\u2028\u2029]")

_TIME_RE = re.compile(
    r"(\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2})(?:\.(\d{1,9}))?([Zz]|[+-]\d{2}:\d{2})\Z"
)


def _dumps(value: Any) -> str:
    """Compact JSON with HTML-sensitive characters escaped."""
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    return _HTML_RE.sub(lambda m: _HTML_ESCAPES[m.group()], text)


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.replace(microsecond=0, tzinfo=None).isoformat()
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset() or timedelta(0)
    total = int(offset.total_seconds())
    if total == 0:
        return text + "Z"
    sign = "+" if total > 0 else "-"
    hours, minutes = divmod(abs(total) // 60, 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def _parse_time(value: Any, name: str) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"{name}: expected a time string, got {type(value).__name__}")
    match = _TIME_RE.match(value)
    if not match:
        raise ValueError(f"{name}: invalid time {value!r}")
    stamp, frac, zone = match.groups()
    frac = (frac or "").ljust(6, "0")[:6]
    zone = "+00:00" if zone in ("Z", "z") else zone
    return datetime.fromisoformat(f"{stamp[:10]}T{stamp[11:]}.{frac}{zone}")


def _is_optional(hint: Any) -> bool:
    if hint is Any:
        return True
    origin = typing.get_origin(hint)
    return origin in (typing.Union, types.UnionType) and type(None) in typing.get_args(hint)


def _decode(hint: Any, value: Any, name: str, unsigned: bool = False) -> Any:
    if hint is Any:
        return value
    origin = typing.get_origin(hint)
    if origin in (typing.Union, types.UnionType):
        if value is None:
            return None
        inner = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        return _decode(inner[0], value, name, unsigned)
    if hint is str:
        if not isinstance(value, str):
            raise ValueError(f"{name}: expected a string, got {type(value).__name__}")
        return value
    if hint is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{name}: expected an integer, got {type(value).__name__}")
        if unsigned and not 0 <= value <= _UINT64_MAX:
            raise ValueError(f"{name}: {value} is out of range for an unsigned integer")
        return value
    if hint is datetime:
        return _parse_time(value, name)
    if origin is list:
        if not isinstance(value, list):
            raise ValueError(f"{name}: expected an array, got {type(value).__name__}")
        (item_hint,) = typing.get_args(hint)
        return [_decode(item_hint, item, name) for item in value]
    if origin is dict or hint is dict:
        if not isinstance(value, dict):
            raise ValueError(f"{name}: expected an object, got {type(value).__name__}")
        return dict(value)
    raise TypeError(f"{name}: unsupported field type {hint!r}")


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return _format_time(value)
    if isinstance(value, Model):
        return value.to_dict()
    if isinstance(value, list):
        return [_encode(item) for item in value]
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    return value


@lru_cache(maxsize=None)
def _fields_of(cls: type) -> tuple:
    # Annotations in this module are evaluated objects, so f.type is the hint itself.
    return tuple((f, f.type) for f in dataclasses.fields(cls))


class Model:
    """Base of the JSON wire models; field names are the JSON keys."""

    def to_dict(self) -> dict:
        out = {}
        for f, _hint in _fields_of(type(self)):
            value = getattr(self, f.name)
            if value is None and f.metadata.get("omitempty"):
                continue
            out[f.name] = _encode(value)
        return out

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ValueError(f"{cls.__name__}: expected a JSON object")
        kwargs = {}
        for f, hint in _fields_of(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if value is None and not _is_optional(hint):
                continue
            kwargs[f.name] = _decode(
                hint, value, f"{cls.__name__}.{f.name}", f.metadata.get("unsigned", False)
            )
        return cls(**kwargs)

    def to_json(self) -> str:
        return _dumps(self.to_dict())

    @classmethod
    def from_json(cls, text):
        if isinstance(text, (bytes, bytearray)):
            text = text.decode("utf-8")
        return cls.from_dict(json.loads(text))


def _opt(unsigned: bool = False):
    return field(default=None, metadata={"omitempty": True, "unsigned": unsigned})


def _uint():
    return field(default=0, metadata={"unsigned": True})


def _items():
    return field(default_factory=list)


def _zero_time():
    return field(default=_ZERO_TIME)


@dataclass(eq=True)
class ErrorResponse(Model, Exception):
    code: int = 0
    message: str = ""

    def __str__(self) -> str:
        return self.message


@dataclass
class ErrorEvent(Model):
    code: int = 0
    message: str = ""


@dataclass
class ChatMessagesResponse(Model):
    chat_id: str = ""
    cursor: str = ""
    messages: list[dict[str, Any]] = _items()


@dataclass
class ChatsResponse(Model):
    chats: list[dict[str, Any]] = _items()
    cursor: str = ""
    user_id: str = ""


@dataclass
class DeleteChatEvent(Model):
    chat_id: str = ""


@dataclass
class FolloweesResponse(Model):
    cursor: str = ""
    followees: list[dict[str, Any]] = _items()
    follower: str = ""


@dataclass
class FollowersResponse(Model):
    cursor: str = ""
    followee: str = ""
    followers: list[dict[str, Any]] = _items()


@dataclass
class GetAllChatsEvent(Model):
    cursor: Optional[str] = _opt()
    limit: Optional[int] = _opt(unsigned=True)
    user_id: str = ""


@dataclass
class GetAllMessagesEvent(Model):
    chat_id: str = ""
    cursor: Optional[str] = _opt()
    limit: Optional[int] = _opt(unsigned=True)


@dataclass
class GetAllRepliesEvent(Model):
    cursor: Optional[str] = _opt()
    limit: Optional[int] = _opt(unsigned=True)
    parent_id: str = ""
    root_id: str = ""


@dataclass
class GetAllTweetsEvent(Model):
    cursor: Optional[str] = _opt()
    limit: Optional[int] = _opt(unsigned=True)
    user_id: str = ""


@dataclass
class GetAllUsersEvent(Model):
    cursor: Optional[str] = _opt()
    limit: Optional[int] = _opt(unsigned=True)
    user_id: str = ""


@dataclass
class GetChatEvent(Model):
    chat_id: str = ""


@dataclass
class GetFollowersEvent(Model):
    cursor: Optional[str] = _opt()
    limit: Optional[int] = _opt(unsigned=True)
    user_id: str = ""


@dataclass
class GetReactorsEvent(Model):
    cursor: Optional[str] = _opt()
    limit: Optional[int] = _opt(unsigned=True)
    tweet_id: str = ""


@dataclass
class GetLikesCountEvent(Model):
    tweet_id: str = ""


@dataclass
class GetMessageEvent(Model):
    chat_id: str = ""
    id: str = ""


@dataclass
class GetTweetStatsEvent(Model):
    tweet_id: str = ""
    user_id: str = ""


@dataclass
class GetReplyEvent(Model):
    reply_id: str = ""
    root_id: str = ""
    user_id: str = ""


@dataclass
class GetTweetEvent(Model):
    tweet_id: str = ""
    user_id: str = ""


@dataclass
class GetUserEvent(Model):
    user_id: str = ""


@dataclass
class LikeEvent(Model):
    tweet_id: str = ""
    user_id: str = ""
    owner_id: str = ""


@dataclass
class LikesCountResponse(Model):
    count: int = _uint()


@dataclass
class LoginEvent(Model):
    password: str = ""
    username: str = ""


@dataclass
class LogoutEvent(Model):
    token: str = ""


@dataclass
class Message(Model):
    """Envelope of every client request and response; body is any JSON value."""

    body: Any = _opt()
    message_id: str = ""
    node_id: str = ""
    path: str = ""
    timestamp: datetime = _zero_time()
    version: str = ""


@dataclass
class NewChatEvent(Model):
    chat_id: Optional[str] = _opt()
    other_user_id: str = ""
    owner_id: str = ""


@dataclass
class NewReplyEvent(Model):
    created_at: datetime = _zero_time()
    id: str = ""
    parent_id: Optional[str] = _opt()
    parent_user_id: str = ""
    root_id: str = ""
    text: str = ""
    user_id: str = ""
    username: str = ""


@dataclass
class RepliesResponse(Model):
    cursor: str = ""
    replies: list[dict[str, Any]] = _items()
    user_id: Optional[str] = _opt()


@dataclass
class TweetsResponse(Model):
    cursor: str = ""
    tweets: list[dict[str, Any]] = _items()
    user_id: str = ""


@dataclass
class TweetStatsResponse(Model):
    tweet_id: str = ""
    retweets_count: int = _uint()
    likes_count: int = _uint()
    replies_count: int = _uint()
    views_count: int = _uint()


@dataclass
class IDsResponse(Model):
    cursor: str = ""
    users: list[str] = _items()


@dataclass
class UnretweetEvent(Model):
    tweet_id: str = ""
    retweeter_id: str = ""


@dataclass
class UsersResponse(Model):
    cursor: str = ""
    users: list[dict[str, Any]] = _items()


@dataclass
class UploadImageEvent(Model):
    # image mime type + "," + base64
    file: str = ""


@dataclass
class UploadImageResponse(Model):
    key: str = ""


@dataclass
class GetImageEvent(Model):
    user_id: str = ""
    key: str = ""


@dataclass
class GetImageResponse(Model):
    # image mime type + "," + base64
    file: str = ""


DeleteMessageEvent = GetMessageEvent
DeleteReplyEvent = GetReplyEvent
DeleteTweetEvent = GetTweetEvent
GetFolloweesEvent = GetFollowersEvent
GetLikersResponse = UsersResponse
GetReTweetsCountEvent = GetLikesCountEvent
GetRetweetersResponse = UsersResponse
GetTimelineEvent = GetAllTweetsEvent
ReTweetsCountResponse = LikesCountResponse
UnlikeEvent = LikeEvent