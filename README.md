# vzporedno

A collection of small, runnable programs that show the classic problems of
concurrent and distributed programming, and the tools used to solve them.
Each module can be used as a library and started as a command.

The package needs nothing beyond the Python standard library (Python 3.10 or
later).

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## What is inside

| Module | Topic |
| --- | --- |
| `vzporedno.channels` | A `Channel` class (unbuffered or buffered, closable, iterable), greetings from several threads, spelling a message through a channel, an announcement that waiting listeners receive, and reading several writers with a timeout |
| `vzporedno.pi` | Estimating pi by Monte Carlo, with many strategies (`Strategy`) for sharing the tally and the random generator between workers |
| `vzporedno.philosophers` | The dining philosophers, from uncontrolled forks to several correct solutions |
| `vzporedno.contention` | Starvation of a polite worker by a greedy one, and a livelock over two forks |
| `vzporedno.rwlock` | `RWLock`, a readers-writer lock in which a waiting writer blocks new readers |
| `vzporedno.readers_writers` | The readers-writers problem: no control, one mutex, counted readers, a semaphore, a readers-writer lock |
| `vzporedno.barrier` | Barriers: none, one-shot, two-phase (`PhaseBarrier`), gates (`GateBarrier`), condition variable (`ConditionBarrier`) |
| `vzporedno.producer_consumer` | Producers and consumers over a bounded `RingBuffer` or a `queue.Queue` |
| `vzporedno.concurrent_map` | A dictionary shared by reading and writing threads: unguarded, behind a readers-writer lock, or behind a single mutex |
| `vzporedno.storage` | `TodoStorage`, a thread-safe to-do store with create, read, update and delete |
| `vzporedno.tcp` | A TCP client and server exchanging a timestamped greeting, as plain text or as a JSON-encoded `MessageAndTime` |
| `vzporedno.rest` | The to-do store served over HTTP under `/todos`, and `RestClient` |
| `vzporedno.rpc` | The to-do store offered through remote calls, over HTTP (XML-RPC) or plain TCP (JSON lines), and `RpcClient` |
| `vzporedno.ntp` | An NTP v3 client that computes round-trip delay and clock offset, and a wall-clock versus monotonic timing of a sleep |

## Commands

Every module except `vzporedno.rwlock` has a command. Each one accepts
`--help` and lists its options.

```
vzporedno-channels hello|stream|letters|announce|select|deadlock
vzporedno-pi
vzporedno-philosophers
vzporedno-contention starvation|livelock
vzporedno-readers-writers
vzporedno-barrier
vzporedno-producer-consumer
vzporedno-map
vzporedno-storage
vzporedno-tcp
vzporedno-rest
vzporedno-rpc
vzporedno-ntp
```

Most experiments take a `--strategy`, `--kind` or `--mode` option that picks
the variant to run, for example:

```
vzporedno-pi -i 1000000 -g 4 --strategy seeded -s 7
vzporedno-philosophers -d 3 --strategy try-lock --delay 0.01
vzporedno-barrier -g 4 -p 5 --kind gates
```

Some variants are deliberately broken: the `uncontrolled` philosophers share
forks freely, the `locks` philosophers may deadlock, and the `race` strategy
of `vzporedno-pi` may lose counts.

The networked examples (`vzporedno-tcp`, `vzporedno-rest`, `vzporedno-rpc`)
start a server when no server address is given (`-s`) and print the host
name and port they listen on; start the command again with `-s HOST` and
`-p PORT` to run a client against it. Several clients may run at once.
`vzporedno-tcp --struct` exchanges structured messages instead of strings;
server and client must agree. `vzporedno-rpc -c tcp` uses plain TCP instead
of HTTP, again on both sides.

`vzporedno-ntp` asks `ntp1.arnes.si` by default (`-s` picks another server,
`host:port` another port), so it needs network access.
`vzporedno-ntp --clock SECONDS` measures a sleep instead.

## Using the modules

The to-do store is the shared piece behind the REST and RPC examples:

```python
from vzporedno.storage import NotFoundError, Todo, TodoStorage

store = TodoStorage()
store.create(Todo("predavanja", False))
store.create(Todo("vaje", False))
store.update(Todo("predavanja", True))
store.delete(Todo("vaje", False))

print(store.read(Todo("", False)))   # every task
try:
    store.read(Todo("izpit", False))
except NotFoundError:
    print("no such task")
```

The readers-writer lock, with its context managers:

```python
from vzporedno.rwlock import RWLock

lock = RWLock()
with lock.read_locked():
    ...  # many readers may be here together
with lock.write_locked():
    ...  # one writer alone
```

Channels:

```python
from vzporedno.channels import letters_from_message, message_from_letters

print(message_from_letters(letters_from_message("Hello world!")))  # HELLO WORLD!
```

NTP time stamps:

```python
from vzporedno.ntp import ntp_to_unix_ns, unix_ns_to_ntp

sec, frac = unix_ns_to_ntp(1_700_000_000_000_000_000)
print(ntp_to_unix_ns(sec, frac))
```

The other modules follow the same pattern: a `run`, `estimate`, `dine`,
`starvation`, `livelock` or similar function that performs the experiment
and returns its result, and a `main` that reads the command line and prints.

## What it does not do

The to-do store is offered over REST and over RPC (XML-RPC or JSON lines)
only; there is no gRPC service. The TCP greeting exchange keeps no
vector-clock log of its events.