# lowcar

`lowcar` models the small microcontroller devices of a robot (limit
switches, line followers, a servo controller, a two-motor controller and a
power distribution board) together with the serial protocol they use to
talk to a device handler.

Each device runs a loop that reads framed messages, answers the first
`DEVICE_PING` with an `ACKNOWLEDGEMENT` carrying its type, year and UID,
applies `DEVICE_WRITE` requests to its parameters, sends `DEVICE_DATA`
with every readable parameter, sends queued `LOG` messages, and resets
itself when pings stop arriving (after one second by default) or an `RST`
is received.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## The wire format

Every packet is a `0x00` delimiter, one byte giving the length of the
encoded body, then the COBS-encoded body. The body is the message id, the
payload length, the payload, and an XOR checksum of everything before it.
The framing helpers are available on their own:

```python
from lowcar.messenger import checksum, cobs_decode, cobs_encode

body = bytes([0x01, 0x00, 0x01])
encoded = cobs_encode(body)
assert 0 not in encoded
assert cobs_decode(encoded) == body
assert checksum(body[:2]) == body[2]
```

Message ids, device types and status values live in `lowcar.defs`
(`MessageID`, `DeviceType`, `Status`), alongside the `Message` and
`DeviceId` records and the errors raised for bad input: `LowcarError`
and its subclasses `MalformedDataError` (no delimiter, bad checksum,
truncated COBS block) and `ProcessError` (short read or write, payload
too large).

`Messenger.send_message` frames and writes a message, `read_message`
returns the next `Message` or `None` when nothing is waiting, and
`printf`, `print_float` and `flush` queue and send log lines.

## Driving a device

Devices take a `Board` and a `ByteStream`. The `Board` in
`lowcar.hardware` stands in for the microcontroller: time only moves when
`Board.advance` or `Board.delay` is called, input pins are driven with
`Board.set_input`, and pin, PWM, servo, SPI, I2C and buzzer output is
recorded for inspection.

```python
from lowcar.defs import MessageID
from lowcar.dummy_device import DummyDevice
from lowcar.hardware import Board, ByteStream
from lowcar.messenger import Messenger, cobs_encode

board, stream = Board(), ByteStream()
device = DummyDevice(board, stream)
device.set_uid(0x1234)

ping = cobs_encode(bytes([MessageID.DEVICE_PING, 0, MessageID.DEVICE_PING]))
stream.feed(bytes([0, len(ping)]) + ping)
device.loop()
assert device.enabled

reply = ByteStream()
reply.feed(stream.take_output())
ack = Messenger(reply).read_message()
assert ack.message_id == MessageID.ACKNOWLEDGEMENT
```

## Modules

| Module | Contents |
| --- | --- |
| `lowcar.defs` | protocol constants and enums, message records, errors |
| `lowcar.hardware` | `Board`, `ByteStream` (in memory or over a pyserial port), `StatusLED` |
| `lowcar.messenger` | `cobs_encode`, `cobs_decode`, `checksum`, `Messenger` |
| `lowcar.device` | `Device`, the generic device loop |
| `lowcar.dummy_device` | `DummyDevice`, sixteen test parameters of every type |
| `lowcar.sensors` | `LimitSwitch`, `LineFollower` |
| `lowcar.pid` | `PID` controller, `regression`, `velocity_to_tps` |
| `lowcar.koala_leds` | motor controller pin numbers and `LEDKoala` |
| `lowcar.servo_control` | `ServoControl` |
| `lowcar.koala_bear` | `KoalaBear`, the two-motor controller |
| `lowcar.pdb` | `PDB`, battery cell monitor with a seven-segment display |
| `lowcar.runner` | `build_device`, `DEVICES` and the command-line entry point |

New device kinds subclass `Device` and override `device_read`,
`device_write`, `device_enable`, `device_reset` and `device_actions`.

## Command line

```
lowcar --help
lowcar DummyDevice --iterations 1000
lowcar DummyDevice --port /dev/ttyUSB0 --uid 0x1234
```

The command builds the named device (`DummyDevice`, `KoalaBear`,
`LimitSwitch`, `LineFollower`, `PDB` or `ServoControl`) with
`lowcar.runner.build_device`, prints its UID, and runs its loop, moving
the board's clock with real time. `--port` opens a serial port for the
protocol (an in-memory stream is used otherwise), `--uid` sets the 64-bit
UID (random if omitted), and `--iterations` stops after that many loops;
otherwise it runs until interrupted.

## What it does not do

Only the protocol can reach the outside world, through `--port`. Pins,
sensors, motors, servos, the buzzer and the display all live on the
simulated `Board`: nothing here reads or drives real hardware, and
nothing builds or loads firmware onto a microcontroller.