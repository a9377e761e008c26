# imtools

Building blocks for messaging services. The package uses only the standard
library.

- **`imtools.rotatelogs`**: a log file writer, `RotateLogs`. It switches to a
  new file as time passes or as the file grows, and it takes file names from a
  strftime pattern. It removes old files by age (`max_age`) or keeps only the
  newest `rotation_count` files. It can keep a symlink (`link_name`) pointing at
  the current file.
- **`imtools.zlog`**: structured logging with levels. It writes coloured
  console lines or JSON lines, to stdout, to any text stream, or to rotating
  files. Each line carries the values found in the request context.
- **`imtools.mcontext`**: an immutable request `Context`. It carries the
  operation ID, the operating user, the platform, the connection ID, the
  trigger ID and the remote address.
- **`imtools.memamq`**: `MemoryQueue`, an in-memory task queue run by a pool of
  worker threads.
- **`imtools.mw`**: middleware helpers:
  - `specialerror`: maps exceptions to a `CodeError` that carries a numeric code.
  - `errstack`: adds the call path to an error message, and logs recovered
    failures together with the current stack.
  - `replace_nil`: fills `None` fields of dataclasses with an empty list, dict
    or set, following each field's annotation.
  - `intercept_chain`: combines several interceptors into one.
- **`imtools.mq.kafka`**:
  - Kafka configuration records, `KafkaConfig` and `TLSConfig`.
  - A client TLS context, built by `new_tls_config`.
  - Conversion between message headers and a `Context`.

## Installation

```
pip install .
```

## Rotating log files

```python
from imtools.rotatelogs.rotatelogs import RotateLogs

with RotateLogs("logs/app.%Y-%m-%d", rotation_count=3) as out:
    out.write(b"service started\n")
    print(out.current_filename())
```

- When the file name already exists, `rotate()` switches files at once and adds
  a numeric suffix (`.1`, `.2`, ...).
- `force_new_file=True` starts a fresh file on the first write, even if the
  pattern's name already exists.
- Setting both `max_age` and `rotation_count` raises `RotateLogsError`.
- `handler` is called with a `FileRotatedEvent` each time the writer changes
  files.

## Logging with context

```python
from imtools import mcontext
from imtools.zlog.logger import init_logger_from_config, zinfo, zerror

init_logger_from_config(
    "app", "gateway", "", "", 5, True, False, "./logs", 1, 24, "1.0.0", False
)
ctx = mcontext.new_ctx("op-1")
ctx = mcontext.set_op_user_id(ctx, "user-1")
zinfo(ctx, "request handled", "path", "/send")
zerror(ctx, "request failed", ValueError("bad input"))
```

- The context adds `operationID` and `opUserID` to each line.
- Log levels are given as integers: 0 fatal, 1 panic, 2 error, 3 warn, 4 info,
  5 debug and 6 debug with SQL.
- `sdk_log` logs on behalf of other code, tagged with that code's file and line.
- `init_console_logger` installs the logger that `cinfo` uses.
- When `imtools.zlog.logger` is imported, it installs a default logger at debug
  level. That logger writes to stdout and to `./logs/DefaultLogger.<date>`,
  from the first entry on.

## In-memory task queue

```python
from imtools.memamq import MemoryQueue

queue = MemoryQueue(4, 100)
queue.push(lambda: print("work"))
queue.stop()
```

- `push` raises `QueueStoppedError` once the queue has stopped. It raises
  `QueueFullError` when no slot becomes free within three seconds.
- `not_wait_push` raises `QueueFullError` at once if the queue is full.
- `push_until` and `batch_push_until` wait until a `threading.Event` is set.
  When that happens, they raise `QueueCancelledError`, whose `pushed` attribute
  counts the tasks already queued.
- `stop` runs the queued tasks and then waits for the workers to finish.

## What the package does not do

- It has no Kafka producer or consumer, and it opens no connection to a broker.
  `imtools.mq.kafka` only builds configuration, TLS contexts and message
  headers.
- It contains no RPC or HTTP server. The interceptor chain and the error
  helpers are building blocks for one.
- It has no adapters that feed SQL or ZooKeeper client logging into `zlog`.

## Running the tests

```
pip install ".[test]"
pytest
```