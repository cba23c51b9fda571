# mockaws

YAML configuration loading and in-memory resource models for a local mock of
queue (SQS-style) and topic (SNS-style) messaging services.

A YAML file describes one or more named environments. Each environment sets
the host, port, region and account id the mock pretends to be, default queue
attributes, and the queues, topics and subscriptions that should exist at
start-up. Loading an environment fills a `Registry` of queues and topics.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Configuration file

```yaml
Local:
  Host: localhost
  Port: 4100
  Region: us-east-1
  AccountId: "100010001000"
  QueueAttributeDefaults:
    VisibilityTimeout: 10
    ReceiveMessageWaitTimeSeconds: 11
    MaximumMessageSize: 1024
  Queues:
    - Name: local-queue1
    - Name: local-queue3
      RedrivePolicy: '{"maxReceiveCount": 100, "deadLetterTargetArn": "arn:aws:sqs:us-east-1:100010001000:local-queue3-dlq"}'
    - Name: local-queue3-dlq
  Topics:
    - Name: local-topic1
      Subscriptions:
        - QueueName: local-queue4
          Raw: false
        - QueueName: local-queue5
          Raw: true
          FilterPolicy: '{"foo": ["bar"]}'
```

Keys are matched exactly first and then case-insensitively, so `AccountId`
and `AccountID` both work. A value of the wrong type (for example a list
where a number is expected) makes the file invalid.

Other environment keys: `SqsPort`, `SnsPort`, `LogToFile`, `LogFile`,
`EnableDuplicates`, `RandomLatency` (`Min`, `Max`). Queue entries may also set
`VisibilityTimeout` and `MessageRetentionPeriod`. Subscription entries may set
`Protocol`, `EndPoint` and `TopicArn`.

## Using it

```python
from mockaws.models import Registry
from mockaws.config import load_yaml_config

registry = Registry()
loaded = load_yaml_config("goaws.yaml", "Local", registry)

print(loaded.ports)                            # e.g. ["4100"]
print(sorted(loaded.environments))             # every environment in the file

queue = registry.queues["local-queue1"]
print(queue.url, queue.arn, queue.visibility_timeout)

topic = registry.topics["local-topic1"]
for subscription in topic.subscriptions:
    print(subscription.protocol, subscription.end_point, subscription.raw)
```

### `mockaws.config`

- `load_yaml_config(filename, env, registry)` loads one environment into the
  registry and returns a `LoadedConfig` with `ports` and `environments`.
  - An empty `env` means `Local`. An environment not present in the file is
    treated as an empty one, so only the defaults below apply.
  - With an empty `filename`, `find_default_config(".")` is used.
  - A missing file, an unreadable file or invalid YAML is logged and returns
    `ports == ["4100"]` without touching the registry.
  - Ports: `Port` if set; otherwise `SqsPort` and `SnsPort` if both are set
    (the environment's port then becomes `SqsPort`); otherwise `4100`.
  - `registry.environment` becomes a copy of the selected environment with
    defaults filled in; `registry.log_messages` follows `LogToFile`, and
    `registry.log_file` is `LogFile` when logging is on and set, else
    `./goaws_messages.log`.
  - Queues take each unset (zero) attribute from the environment defaults.
    Queue names ending in `.fifo` are marked `is_fifo`.
  - Redrive policies are applied in a second pass, so a dead-letter queue may
    be declared after the queue using it.
  - Subscriptions whose protocol contains `http` keep their own endpoint and
    topic ARN. All others are queue subscriptions: the queue named by
    `QueueName` is created if it does not exist (with the default visibility
    timeout, wait time and maximum size), and the subscription points at its
    ARN with protocol `sqs`. Subscription ARNs are the topic ARN plus a
    random UUID.
  - A bad redrive policy or filter policy is logged and stops loading at that
    point; queues already created stay in the registry.
- `find_default_config(root)` searches a directory tree for `goaws.yaml`; when
  there are several, the last one in lexical walk order wins. Returns `None`
  if there is none.
- `parse_environments(text)` parses YAML text into a dict of `Environment`
  objects, raising `ValueError` on invalid input.
- `set_queue_redrive_policy(queues, queue, redrive_policy)` reads a JSON
  policy (`maxReceiveCount` as a number or a string, `deadLetterTargetArn`),
  looks the dead-letter queue up by the last `:`-separated part of the ARN,
  and sets `queue.dead_letter_queue` and `queue.max_receive_count`. It raises
  `RedrivePolicyError` for invalid JSON, for only one of the two values being
  set, or for an unknown dead-letter queue.

### `mockaws.models`

- `Environment`, with `EnvQueue`, `EnvTopic`, `EnvSubscription`,
  `EnvQueueAttributes` and `RandomLatency`, holds configuration as read.
  `Environment.from_mapping(data)` builds one from parsed YAML;
  `queue_url(name)`, `queue_arn(name)` and `topic_arn(name)` build names for
  resources in that environment. The queue URL includes the region as a host
  prefix only when a region is set.
- `Queue`, `Topic` and `Subscription` are the live resources.
- `Registry` holds `queues`, `topics`, the active `environment`, the logging
  settings and a `lock`; `Registry.reset()` clears all queues and topics.
- `default_environment()` returns host `localhost`, port `4100`, region
  `local`, account `queue`, visibility timeout 30 and maximum message size
  262144.

Defaults applied by `load_yaml_config` when an environment leaves them unset:

| Setting                         | Default      |
|---------------------------------|--------------|
| VisibilityTimeout               | 30           |
| MaximumMessageSize              | 262144       |
| MessageRetentionPeriod          | 345600       |
| ReceiveMessageWaitTimeSeconds   | 0            |
| AccountId                       | `queue`      |
| Host                            | `localhost` (the port used in queue URLs then becomes `4100`) |

No region default is applied on load: with no `Region`, ARNs have an empty
region field and queue URLs have no region prefix.

## What this package does not do

It only loads configuration and holds resource state. It has no HTTP server
or command to start one, does not implement any queue or topic API actions,
does not store, send or deliver messages, and does not write message logs:
`log_messages` and `log_file` are recorded on the registry but nothing in the
package uses them. `RandomLatency` is read but not applied.