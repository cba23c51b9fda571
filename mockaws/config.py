"""Loading of YAML configuration into the emulator's registry."""

from __future__ import annotations

import copy
import json
import logging
import os
import re
import uuid
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from mockaws.models import (
    DEFAULT_LOG_FILE,
    EnvSubscription,
    Environment,
    Queue,
    Registry,
    Subscription,
    Topic,
)

logger = logging.getLogger(__name__)

DEFAULT_PORT = "4100"
DEFAULT_CONFIG_NAME = "goaws.yaml"
DEFAULT_ENVIRONMENT_NAME = "Local"


class RedrivePolicyError(ValueError):
    """Raised when a queue's redrive policy cannot be applied."""


@dataclass
class LoadedConfig:
    """What loading a configuration produced."""

    ports: list[str]
    environments: dict[str, Environment] = field(default_factory=dict)


def _walk(path: str) -> Iterator[str]:
    yield path
    if os.path.isdir(path) and not os.path.islink(path):
        try:
            entries = sorted(os.listdir(path))
        except OSError:
            return
        for entry in entries:
            yield from _walk(os.path.join(path, entry))


def find_default_config(root: str) -> Optional[str]:
    """Search a directory tree for the default config file; the last match in lexical order wins."""
    found = None
    for path in _walk(os.path.abspath(root)):
        if os.path.basename(path) == DEFAULT_CONFIG_NAME:
            found = path
    return found


def parse_environments(text: str) -> dict[str, Environment]:
    """Parse YAML text mapping environment names to their settings."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid configuration: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError("configuration must map environment names to settings")
    return {str(name): Environment.from_mapping(settings) for name, settings in data.items()}


def _field(data: Mapping[Any, Any], name: str) -> Any:
    """Look a JSON key up the way the config format does: exact, then case-insensitive."""
    if name in data:
        return data[name]
    return next((v for k, v in data.items() if isinstance(k, str) and k.lower() == name.lower()), None)


def set_queue_redrive_policy(queues: Mapping[str, Queue], queue: Queue, redrive_policy: str) -> None:
    """Attach a dead-letter queue to ``queue`` as described by a JSON redrive policy.

    ``maxReceiveCount`` may be given as a number or as a string.
    """
    invalid_json = RedrivePolicyError("invalid json for queue redrive policy")
    try:
        data = json.loads(redrive_policy) or {}
    except ValueError:
        raise invalid_json from None
    if not isinstance(data, dict):
        raise invalid_json

    target = _field(data, "deadLetterTargetArn") or ""
    count = _field(data, "maxReceiveCount") or 0
    if not isinstance(target, str) or isinstance(count, bool):
        raise invalid_json
    if isinstance(count, str):
        count = int(count) if re.fullmatch(r"[+-]?[0-9]+", count) else 0
    elif not isinstance(count, int):
        raise invalid_json

    if bool(target) == (count == 0):
        raise RedrivePolicyError("invalid redrive policy values")

    dead_letter_queue = queues.get(target.split(":")[-1])
    if dead_letter_queue is None:
        raise RedrivePolicyError("deadletter queue not found")
    queue.dead_letter_queue = dead_letter_queue
    queue.max_receive_count = count


def _parse_filter_policy(text: str) -> dict[str, list[str]]:
    data = json.loads(text) or {}
    if not isinstance(data, dict):
        raise ValueError("filter policy must be a JSON object")
    policy = {key: values or [] for key, values in data.items()}
    for key, values in policy.items():
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            raise ValueError(f"filter policy values for {key!r} must be a list of strings")
    return policy


def _create_subscription(registry: Registry, config: EnvSubscription, topic_arn: str) -> Subscription:
    if "http" in config.protocol:
        return Subscription(
            end_point=config.end_point,
            protocol=config.protocol,
            topic_arn=config.topic_arn,
            raw=config.raw,
            subscription_arn=f"{config.topic_arn}:{uuid.uuid4()}",
        )
    env = registry.environment
    defaults = env.queue_attribute_defaults
    name = config.queue_name
    if name not in registry.queues:
        registry.queues[name] = Queue(
            name=name,
            visibility_timeout=defaults.visibility_timeout,
            arn=env.queue_arn(name),
            url=env.queue_url(name),
            receive_message_wait_time_seconds=defaults.receive_message_wait_time_seconds,
            maximum_message_size=defaults.maximum_message_size,
            is_fifo=name.endswith(".fifo"),
            enable_duplicates=env.enable_duplicates,
        )
    return Subscription(
        end_point=registry.queues[name].arn,
        protocol="sqs",
        topic_arn=topic_arn,
        raw=config.raw,
        subscription_arn=f"{topic_arn}:{uuid.uuid4()}",
    )


def load_yaml_config(filename: str, env: str, registry: Registry) -> LoadedConfig:
    """Load one environment from a YAML file into ``registry``.

    With no filename the working directory tree is searched for the
    default config file. Problems are logged and leave the default port.
    """
    ports = [DEFAULT_PORT]

    filename = filename or find_default_config(".") or ""
    if not filename:
        logger.warning("Failure to find default config file")
        return LoadedConfig(ports)

    path = os.path.abspath(filename)
    if not os.path.exists(path):
        logger.warning("Failure to find config file: %s", path)
        return LoadedConfig(ports)

    logger.info("Loading config file: %s", path)
    try:
        environments = parse_environments(Path(path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError):
        return LoadedConfig(ports)
    except ValueError as exc:
        logger.error("err: %s", exc)
        return LoadedConfig(ports)

    selected = environments.get(env or DEFAULT_ENVIRONMENT_NAME, Environment())
    current = copy.deepcopy(selected)
    registry.environment = current

    if selected.port:
        ports = [selected.port]
    elif selected.sqs_port and selected.sns_port:
        ports = [selected.sqs_port, selected.sns_port]
        current.port = selected.sqs_port

    registry.log_messages = selected.log_to_file
    registry.log_file = (selected.log_to_file and selected.log_file) or DEFAULT_LOG_FILE

    defaults = current.queue_attribute_defaults
    if defaults.visibility_timeout <= 0:
        defaults.visibility_timeout = 30
    if defaults.maximum_message_size <= 0:
        defaults.maximum_message_size = 262144
    if defaults.message_retention_period <= 0:
        defaults.message_retention_period = 345600
    defaults.receive_message_wait_time_seconds = max(defaults.receive_message_wait_time_seconds, 0)

    current.account_id = current.account_id or "queue"
    if not current.host:
        current.host = "localhost"
        current.port = DEFAULT_PORT

    result = LoadedConfig(ports, environments)

    with registry.lock:
        for queue in selected.queues:
            registry.queues[queue.name] = Queue(
                name=queue.name,
                visibility_timeout=queue.visibility_timeout or defaults.visibility_timeout,
                arn=current.queue_arn(queue.name),
                url=current.queue_url(queue.name),
                receive_message_wait_time_seconds=(
                    queue.receive_message_wait_time_seconds or defaults.receive_message_wait_time_seconds
                ),
                maximum_message_size=queue.maximum_message_size or defaults.maximum_message_size,
                message_retention_period=queue.message_retention_period or defaults.message_retention_period,
                is_fifo=queue.name.endswith(".fifo"),
                enable_duplicates=current.enable_duplicates,
            )

        # Second pass so a dead-letter queue may be declared after the queue using it.
        try:
            for queue in selected.queues:
                if queue.redrive_policy:
                    set_queue_redrive_policy(registry.queues, registry.queues[queue.name], queue.redrive_policy)

            for topic in selected.topics:
                topic_arn = current.topic_arn(topic.name)
                new_topic = Topic(name=topic.name, arn=topic_arn)
                for config_sub in topic.subscriptions:
                    subscription = _create_subscription(registry, config_sub, topic_arn)
                    if config_sub.filter_policy:
                        subscription.filter_policy = _parse_filter_policy(config_sub.filter_policy)
                    new_topic.subscriptions.append(subscription)
                registry.topics[topic.name] = new_topic
        except ValueError as exc:
            logger.error("err: %s", exc)

    return result