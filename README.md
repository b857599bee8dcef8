# audiodevmon

Keep your preferred audio devices in use. `audiodevmon` ranks the available
input and output devices by rules you configure and switches the default to
the best one as devices come and go. It works against an audio system object
that you supply, so the decision logic can run on any platform and be tested
without real hardware.

## Installation

```
pip install audiodevmon
```

For running the test suite:

```
pip install "audiodevmon[test]"
pytest
```

## Configuration

The configuration is a TOML file, by default
`~/.config/audio-device-monitor/config.toml` (see
`audiodevmon.config.default_config_path()`). If the file does not exist when it
is loaded, a default one is written there.

```toml
[general]
check_interval_ms = 1000
log_level = "info"
daemon_mode = false

[notifications]
show_device_availability = false   # connect/disconnect notifications
show_switching_actions = true      # notifications when a switch happens

[[output_devices]]
name = "AirPods"
weight = 100
match_type = "contains"
enabled = true

[[output_devices]]
name = "MacBook Pro Speakers"
weight = 10
match_type = "exact"
enabled = true

[[input_devices]]
name = "AirPods"
weight = 100
match_type = "contains"
enabled = true
```

A `[general]` table, when present, must hold all three keys; each rule must
hold `name`, `weight`, `match_type` and `enabled`. Missing sections take their
defaults, and missing rule lists are empty. Problems reading, parsing or
writing raise `audiodevmon.config.ConfigError`.

Each rule matches a device name with one of `exact`, `contains`,
`startswith`, `endswith` or `regex` (`regex` is currently treated like
`contains`, with a warning logged). Matching is case sensitive and disabled
rules never match. Among the devices that match some rule, the one whose
matching rule has the highest weight wins.

Older files that use `show_device_changes` in `[notifications]` are still
read: its value is carried over to `show_device_availability` when that key is
absent.

## Using the library

Load and save configuration, either directly or through a `ConfigLoader`,
which goes through a file system object (`StandardFileSystem` uses the local
disk):

```python
from audiodevmon.config import Config
from audiodevmon.loader import ConfigLoader

config = Config.load("settings.toml")

loader = ConfigLoader.with_default_path()
config = loader.load_config()
config.general.log_level = "debug"
loader.save_config(config)
```

`ConfigLoader.is_config_modified(timestamp)` tells whether the file changed
after a POSIX timestamp, and `reload_config()` reads it again.

Check a device name against a rule:

```python
from audiodevmon.config import DeviceRule, MatchType

rule = DeviceRule(name="MacBook", weight=50, match_type=MatchType.STARTS_WITH, enabled=True)
rule.matches("MacBook Pro Speakers")   # True
```

Devices are described by `audiodevmon.device.AudioDevice` (id, name,
`DeviceType`, default and availability flags, optional UID).

### Switching

`audiodevmon.controller.DeviceController` works against any object that
provides the methods of the `AudioSystem` protocol: `enumerate_devices`,
`get_default_output_device`, `get_default_input_device`,
`set_default_output_device(name)`, `set_default_input_device(name)`,
`is_device_available(device_id)` and `add_device_change_listener(callback)`.

```python
from audiodevmon.controller import DeviceController

controller = DeviceController(audio_system, config)
controller.initialize()
controller.update_current_devices()
controller.handle_device_connected(device)
controller.handle_device_disconnected(device)
```

`PriorityPolicy` does the ranking. `Notifier` sends connect, disconnect,
switch and switch-failure messages as the notification settings allow; by
default they are written to the log, or pass `sender=` a callable taking a
title and a message.

`audiodevmon.listener.DeviceChangeListener` reacts to change events from the
audio system: it announces devices that appeared or vanished (compared by
UID), switches to a better device when one is present, and records the
system's current defaults. `audiodevmon.monitor.AudioDeviceMonitor` prints
the devices present and the defaults, then registers the listener:

```python
from audiodevmon.monitor import AudioDeviceMonitor

monitor = AudioDeviceMonitor(audio_system, config)
monitor.start_monitoring()
...
monitor.stop()
```

### Logging

Logging can go to the console and to a log file rotated at midnight, by
default under `~/.local/share/audio-device-monitor/logs`, in plain or JSON
form:

```python
from audiodevmon.logsetup import LoggingConfig, cleanup_old_logs, get_default_log_dir, initialize_logging

initialize_logging(LoggingConfig(json_format=True))
removed = cleanup_old_logs(get_default_log_dir(), 7)
```

`cleanup_old_logs` removes `*.log` files older than the given number of days
and returns how many it removed.

## What it does not do

- It has no built-in audio backend: it does not enumerate or switch real
  devices by itself. You supply an object implementing `AudioSystem` for your
  platform.
- It installs no command-line program and runs no background service; the
  monitor only handles events your audio system delivers.
- It shows no desktop notifications; the `Notifier` logs messages unless you
  give it a sender of your own.