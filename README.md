# vswitchctl

Work with Open vSwitch from Python. `vswitchctl` builds OpenFlow actions and
flows as objects and turns them into the text that `ovs-ofctl` accepts, parses
action lists back into objects, reads aggregate flow statistics, runs the
Open vSwitch command-line tools, and wraps `ovs-dpctl` for datapath and
conntrack limit management.

## Installation

```
pip install vswitchctl
```

The package has no dependencies outside the standard library. Anything that
acts on a switch runs the Open vSwitch tools (`ovs-dpctl` and whatever
command you pass to the client), so these must be installed and on `PATH`.

## Actions

`vswitchctl.actions` holds the basic actions (`all_ports`, `drop`, `flood`,
`in_port`, `local`, `normal`, `strip_vlan`, `connection_tracking`,
`mod_data_link_source`/`_destination`, `mod_network_source`/`_destination`,
`mod_transport_source_port`/`_destination_port`, `mod_vlan_vid`, `output`,
`output_field`). `vswitchctl.fieldactions` holds `multipath`, `conjunction`,
`resubmit`, `resubmit_port`, `set_field`, `load`, `set_tunnel`, `move` and
`learn`.

```python
from vswitchctl.actions import output, mod_vlan_vid, ActionError
from vswitchctl.fieldactions import resubmit, load

output(10).marshal_text()          # "output:10"
resubmit(0, 1).marshal_text()      # "resubmit(,1)"
load("0x2", "NXM_OF_ARP_OP[]").marshal_text()   # "load:0x2->NXM_OF_ARP_OP[]"

try:
    mod_vlan_vid(4096).marshal_text()
except ActionError as err:
    print(err)                      # VLAN VID must be between 0 and 4095
```

Values are checked when an action is rendered, not when it is built; invalid
values raise `ActionError`. Every action also has `to_code()`, which returns
the Python call that would build it, e.g. `output(1).to_code() == "output(1)"`.

The helpers `valid_arp_op`, `valid_ipv6_label`, `valid_vlan_vid` and
`valid_vlan_pcp` report whether a value is in range.

## Parsing actions

```python
from vswitchctl.actionparser import parse_action, parse_actions

parse_action("mod_tp_dst:80")
actions, raw = parse_actions("strip_vlan,resubmit(,1),ct(commit,table=65)")
# raw == ["strip_vlan", "resubmit(,1)", "ct(commit,table=65)"]
```

Commas inside parentheses do not split actions. Unbalanced parentheses or
text that matches no known action raise `ActionError`. `ActionParser` accepts
either a string or a readable text stream.

## Flows

```python
from vswitchctl.flow import Flow, Protocol
from vswitchctl.actions import drop

flow = Flow(priority=3000, protocol=Protocol.TCPV4, in_port=72, actions=[drop()])
flow.marshal_text()
# "priority=3000,tcp,in_port=72,table=0,idle_timeout=0,actions=drop"
```

`in_port=PORT_LOCAL` is written as `in_port=LOCAL`, and a non-zero cookie as
a zero-padded hex value. A flow without actions, or with `drop` alongside
other actions, raises `FlowError`; an invalid action raises `ActionError`.

`LearnedFlow` describes a flow installed by `learn(...)`. It accepts only
`load` and `output_field` actions and adds `fin_hard_timeout`,
`hard_timeout`, `limit` (omitted when zero) and `delete_learned`.

## Aggregate statistics

```python
from vswitchctl.flowstats import FlowStats

stats = FlowStats.from_text(
    "NXST_AGGREGATE reply (xid=0x4): packet_count=642800 byte_count=141379644 flow_count=2"
)
stats.packet_count   # 642800
```

Text in the wrong shape raises `InvalidFlowStatsError`.

## Running the tools

```python
from vswitchctl.client import new, sudo, timeout

client = new(sudo(), timeout(5))
client.exec("ovs-vsctl", "show")    # trimmed combined output, as bytes
```

Options passed to `new` configure the client: `timeout`, `debug` (log each
command through the `logging` module at DEBUG level), `sudo`, `set_tcp_param`,
and the `ovs-ofctl` options `flow_format`, `protocols` and `set_ssl_param`
(kept in `Client.ofctl_flags`). `exec_func` and `pipe_func` replace how
commands run, which is useful in tests. `Client.pipe(stdin, cmd, *args)` feeds
data to a command's standard input. A failed command raises `CommandError`; a
failed piped command raises `PipeError`.

## Datapaths and conntrack limits

```python
from vswitchctl.datapath import new_data_path_service

dp = new_data_path_service()        # runs ovs-dpctl under sudo
dp.get_data_paths()
dp.set_ct_limits("system@ovs-system", {"zone": 4, "limit": 4000})
limits = dp.get_ct_limits("system@ovs-system", [2, 3])
limits.default_limit                # {"default": 0}
limits.zone_limits                  # [{"zone": 2, "limit": ..., "count": ...}, ...]
dp.del_ct_limits("system@ovs-system", [4, 3])
```

`DataPathService` takes any object with an `exec(*args)` method, so a fake
can stand in for `ovs-dpctl`. Invalid arguments raise `DataPathError`.

## What the package does not do

- It has no match types; `Flow.matches` takes any objects that have a
  `marshal_text()` method, and you supply them.
- It renders whole flows but does not parse full flow lines (such as the
  output of `ovs-ofctl dump-flows`); only action lists are parsed.
- It has no ready-made wrappers for `ovs-ofctl`, `ovs-vsctl` or `ovs-appctl`
  commands; run them yourself with `Client.exec` or `Client.pipe`.
- It provides no command-line program of its own.