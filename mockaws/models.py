"""Configuration and in-memory resource models for queues and topics."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

DEFAULT_LOG_FILE = "./goaws_messages.log"


def _lookup(data: Mapping[Any, Any], name: str) -> Any:
    """Find a key exactly, falling back to a case-insensitive match."""
    if name in data:
        return data[name]
    lowered = name.lower()
    for key, value in data.items():
        if isinstance(key, str) and key.lower() == lowered:
            return value
    return None


def _to_str(value: Any, name: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, str)):
        return str(value)
    raise ValueError(f"{name} must be a scalar value, got {type(value).__name__}")


def _to_int(value: Any, name: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise ValueError(f"{name} must be an integer, got {value!r}")


def _to_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _get(data: Mapping[Any, Any], name: str, convert: Callable[[Any, str], Any], default: Any) -> Any:
    value = _lookup(data, name)
    if value is None:
        return default
    return convert(value, name)


def _as_mapping(data: Any, what: str) -> Mapping[Any, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


def _get_list(data: Mapping[Any, Any], name: str, parse: Callable[[Any], Any]) -> list:
    value = _lookup(data, name)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{name} must be a list, got {type(value).__name__}")
    return [parse(item) for item in value]


@dataclass
class EnvSubscription:
    """A topic subscription as declared in a configuration file."""

    protocol: str = ""
    end_point: str = ""
    topic_arn: str = ""
    queue_name: str = ""
    raw: bool = False
    filter_policy: str = ""


@dataclass
class EnvTopic:
    """A topic as declared in a configuration file."""

    name: str = ""
    subscriptions: list[EnvSubscription] = field(default_factory=list)


@dataclass
class EnvQueue:
    """A queue as declared in a configuration file."""

    name: str = ""
    receive_message_wait_time_seconds: int = 0
    redrive_policy: str = ""
    maximum_message_size: int = 0
    visibility_timeout: int = 0
    message_retention_period: int = 0


@dataclass
class EnvQueueAttributes:
    """Default attributes applied to queues that leave them unset."""

    visibility_timeout: int = 0
    receive_message_wait_time_seconds: int = 0
    maximum_message_size: int = 0
    message_retention_period: int = 0


@dataclass
class RandomLatency:
    """Bounds of an artificial response delay."""

    min: int = 0
    max: int = 0


def _parse_subscription(data: Any) -> EnvSubscription:
    data = _as_mapping(data, "subscription")
    return EnvSubscription(
        protocol=_get(data, "Protocol", _to_str, ""),
        end_point=_get(data, "EndPoint", _to_str, ""),
        topic_arn=_get(data, "TopicArn", _to_str, ""),
        queue_name=_get(data, "QueueName", _to_str, ""),
        raw=_get(data, "Raw", _to_bool, False),
        filter_policy=_get(data, "FilterPolicy", _to_str, ""),
    )


def _parse_topic(data: Any) -> EnvTopic:
    data = _as_mapping(data, "topic")
    return EnvTopic(
        name=_get(data, "Name", _to_str, ""),
        subscriptions=_get_list(data, "Subscriptions", _parse_subscription),
    )


def _parse_queue(data: Any) -> EnvQueue:
    data = _as_mapping(data, "queue")
    return EnvQueue(
        name=_get(data, "Name", _to_str, ""),
        receive_message_wait_time_seconds=_get(data, "ReceiveMessageWaitTimeSeconds", _to_int, 0),
        redrive_policy=_get(data, "RedrivePolicy", _to_str, ""),
        maximum_message_size=_get(data, "MaximumMessageSize", _to_int, 0),
        visibility_timeout=_get(data, "VisibilityTimeout", _to_int, 0),
        message_retention_period=_get(data, "MessageRetentionPeriod", _to_int, 0),
    )


def _parse_attributes(data: Any) -> EnvQueueAttributes:
    data = _as_mapping(data, "QueueAttributeDefaults")
    return EnvQueueAttributes(
        visibility_timeout=_get(data, "VisibilityTimeout", _to_int, 0),
        receive_message_wait_time_seconds=_get(data, "ReceiveMessageWaitTimeSeconds", _to_int, 0),
        maximum_message_size=_get(data, "MaximumMessageSize", _to_int, 0),
        message_retention_period=_get(data, "MessageRetentionPeriod", _to_int, 0),
    )


def _parse_latency(data: Any) -> RandomLatency:
    data = _as_mapping(data, "RandomLatency")
    return RandomLatency(
        min=_get(data, "Min", _to_int, 0),
        max=_get(data, "Max", _to_int, 0),
    )


@dataclass
class Environment:
    """One named environment of the emulator configuration."""

    host: str = ""
    port: str = ""
    sqs_port: str = ""
    sns_port: str = ""
    region: str = ""
    account_id: str = ""
    log_to_file: bool = False
    log_file: str = ""
    enable_duplicates: bool = False
    topics: list[EnvTopic] = field(default_factory=list)
    queues: list[EnvQueue] = field(default_factory=list)
    queue_attribute_defaults: EnvQueueAttributes = field(default_factory=EnvQueueAttributes)
    random_latency: RandomLatency = field(default_factory=RandomLatency)

    @classmethod
    def from_mapping(cls, data: Any) -> "Environment":
        """Build an environment from parsed configuration data.

        Keys are matched case-insensitively; a value of the wrong type
        raises ValueError.
        """
        data = _as_mapping(data, "environment")
        return cls(
            host=_get(data, "Host", _to_str, ""),
            port=_get(data, "Port", _to_str, ""),
            sqs_port=_get(data, "SqsPort", _to_str, ""),
            sns_port=_get(data, "SnsPort", _to_str, ""),
            region=_get(data, "Region", _to_str, ""),
            account_id=_get(data, "AccountID", _to_str, ""),
            log_to_file=_get(data, "LogToFile", _to_bool, False),
            log_file=_get(data, "LogFile", _to_str, ""),
            enable_duplicates=_get(data, "EnableDuplicates", _to_bool, False),
            topics=_get_list(data, "Topics", _parse_topic),
            queues=_get_list(data, "Queues", _parse_queue),
            queue_attribute_defaults=_parse_attributes(_lookup(data, "QueueAttributeDefaults")),
            random_latency=_parse_latency(_lookup(data, "RandomLatency")),
        )

    def queue_url(self, queue_name: str) -> str:
        """Return the URL under which a queue of this environment is served."""
        if self.region:
            return f"http://{self.region}.{self.host}:{self.port}/{self.account_id}/{queue_name}"
        return f"http://{self.host}:{self.port}/{self.account_id}/{queue_name}"

    def queue_arn(self, queue_name: str) -> str:
        """Return the ARN of a queue in this environment."""
        return f"arn:aws:sqs:{self.region}:{self.account_id}:{queue_name}"

    def topic_arn(self, topic_name: str) -> str:
        """Return the ARN of a topic in this environment."""
        return f"arn:aws:sns:{self.region}:{self.account_id}:{topic_name}"


@dataclass
class Queue:
    """A live queue held by the emulator."""

    name: str
    url: str = ""
    arn: str = ""
    visibility_timeout: int = 0
    receive_message_wait_time_seconds: int = 0
    delay_seconds: int = 0
    maximum_message_size: int = 0
    message_retention_period: int = 0
    is_fifo: bool = False
    enable_duplicates: bool = False
    duplicates: dict[str, datetime] = field(default_factory=dict)
    dead_letter_queue: Optional["Queue"] = None
    max_receive_count: int = 0


@dataclass
class Subscription:
    """A live subscription of an endpoint to a topic."""

    end_point: str
    protocol: str
    topic_arn: str
    raw: bool = False
    subscription_arn: str = ""
    filter_policy: Optional[dict[str, list[str]]] = None


@dataclass
class Topic:
    """A live topic and its subscriptions."""

    name: str
    arn: str
    subscriptions: list[Subscription] = field(default_factory=list)


@dataclass
class Registry:
    """The emulator's shared state: queues, topics and the active environment."""

    queues: dict[str, Queue] = field(default_factory=dict)
    topics: dict[str, Topic] = field(default_factory=dict)
    environment: Environment = field(default_factory=Environment)
    log_messages: bool = False
    log_file: str = DEFAULT_LOG_FILE
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def reset(self) -> None:
        """Remove every queue and topic."""
        with self.lock:
            self.queues.clear()
            self.topics.clear()


def default_environment() -> Environment:
    """Return the environment used when nothing else is configured."""
    return Environment(
        host="localhost",
        port="4100",
        region="local",
        account_id="queue",
        queue_attribute_defaults=EnvQueueAttributes(
            visibility_timeout=30,
            receive_message_wait_time_seconds=0,
            maximum_message_size=262144,
        ),
        random_latency=RandomLatency(min=0, max=0),
    )