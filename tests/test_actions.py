import ipaddress

import pytest

from vswitchctl.actions import (
    ActionError,
    ModNetworkAction,
    TextAction,
    all_ports,
    connection_tracking,
    drop,
    flood,
    in_port,
    local,
    mod_data_link_destination,
    mod_data_link_source,
    mod_network_destination,
    mod_network_source,
    mod_transport_destination_port,
    mod_transport_source_port,
    mod_vlan_vid,
    normal,
    output,
    output_field,
    strip_vlan,
    valid_arp_op,
    valid_ipv6_label,
    valid_vlan_pcp,
    valid_vlan_vid,
)

MAC = bytes([0xDE, 0xAD, 0xBE, 0xEF, 0xDE, 0xAD])


@pytest.mark.parametrize(
    "action, text",
    [
        (all_ports(), "all"),
        (drop(), "drop"),
        (flood(), "flood"),
        (in_port(), "in_port"),
        (local(), "local"),
        (normal(), "normal"),
        (strip_vlan(), "strip_vlan"),
    ],
)
def test_action_constants(action, text):
    assert action.marshal_text() == text


def test_ct_no_arguments():
    with pytest.raises(ActionError, match="no arguments for connection tracking"):
        connection_tracking("").marshal_text()


def test_ct_ok():
    action = connection_tracking(
        "commit,exec(set_field:1->ct_label,set_field:1->ct_mark)"
    )
    assert (
        action.marshal_text()
        == "ct(commit,exec(set_field:1->ct_label,set_field:1->ct_mark))"
    )


@pytest.mark.parametrize(
    "action",
    [
        mod_data_link_destination(bytes([0xDE])),
        mod_data_link_destination(bytes([0xDE, 0xAD, 0xBE, 0xEF, 0xDE, 0xAD, 0xBE])),
        mod_data_link_source(bytes([0xDE])),
        mod_data_link_source(bytes([0xDE, 0xAD, 0xBE, 0xEF, 0xDE, 0xAD, 0xBE])),
    ],
)
def test_mod_data_link_invalid(action):
    with pytest.raises(ActionError, match="hardware address must be 6 octets"):
        action.marshal_text()


def test_mod_data_link_ok():
    assert mod_data_link_destination(MAC).marshal_text() == "mod_dl_dst:de:ad:be:ef:de:ad"
    assert mod_data_link_source(MAC).marshal_text() == "mod_dl_src:de:ad:be:ef:de:ad"


@pytest.mark.parametrize(
    "action",
    [
        mod_network_destination(bytes([0xFF])),
        mod_network_destination("2001:db8::1"),
        mod_network_source(bytes([0xFF])),
        mod_network_source("2001:db8::1"),
    ],
)
def test_mod_network_invalid(action):
    with pytest.raises(ActionError, match="invalid IPv4 address"):
        action.marshal_text()


def test_mod_network_ok():
    ip = ipaddress.IPv4Address("192.168.1.1")
    assert mod_network_destination(ip).marshal_text() == "mod_nw_dst:192.168.1.1"
    assert mod_network_source(ip).marshal_text() == "mod_nw_src:192.168.1.1"


def test_mod_network_accepts_mapped_ipv6():
    action = mod_network_source("::ffff:192.168.1.1")
    assert action == ModNetworkAction(
        source=True, ip=ipaddress.IPv4Address("192.168.1.1")
    )


def test_mod_transport_port_ok():
    assert mod_transport_destination_port(65535).marshal_text() == "mod_tp_dst:65535"
    assert mod_transport_source_port(65535).marshal_text() == "mod_tp_src:65535"


@pytest.mark.parametrize("port", [-1, 65536])
def test_mod_transport_port_out_of_range(port):
    with pytest.raises(ActionError, match="transport port"):
        mod_transport_source_port(port).marshal_text()


@pytest.mark.parametrize("vid", [-1, 4096])
def test_mod_vlan_vid_invalid(vid):
    with pytest.raises(ActionError, match="VLAN VID must be between 0 and 4095"):
        mod_vlan_vid(vid).marshal_text()


def test_mod_vlan_vid_ok():
    assert mod_vlan_vid(10).marshal_text() == "mod_vlan_vid:10"


def test_output_negative():
    with pytest.raises(ActionError, match="output port number must not be negative"):
        output(-1).marshal_text()


def test_output_ok():
    assert output(10).marshal_text() == "output:10"


def test_output_field_ok():
    assert output_field("in_port").marshal_text() == "output:in_port"


def test_output_field_empty():
    with pytest.raises(ActionError, match="output:field syntax"):
        output_field("").marshal_text()


@pytest.mark.parametrize(
    "action, code",
    [
        (drop(), "drop()"),
        (flood(), "flood()"),
        (local(), "local()"),
        (normal(), "normal()"),
        (strip_vlan(), "strip_vlan()"),
        (all_ports(), "all_ports()"),
        (connection_tracking("commit"), "connection_tracking('commit')"),
        (
            mod_data_link_destination(MAC),
            "mod_data_link_destination(bytes([0xde, 0xad, 0xbe, 0xef, 0xde, 0xad]))",
        ),
        (
            mod_data_link_source(MAC),
            "mod_data_link_source(bytes([0xde, 0xad, 0xbe, 0xef, 0xde, 0xad]))",
        ),
        (
            mod_network_destination("192.168.1.1"),
            "mod_network_destination(ipaddress.IPv4Address('192.168.1.1'))",
        ),
        (
            mod_network_source("192.168.1.1"),
            "mod_network_source(ipaddress.IPv4Address('192.168.1.1'))",
        ),
        (mod_transport_destination_port(80), "mod_transport_destination_port(80)"),
        (mod_transport_source_port(80), "mod_transport_source_port(80)"),
        (mod_vlan_vid(10), "mod_vlan_vid(10)"),
        (output(1), "output(1)"),
        (output_field("in_port"), "output_field('in_port')"),
    ],
)
def test_action_to_code(action, code):
    assert action.to_code() == code


def test_unknown_text_action_to_code():
    with pytest.raises(ActionError, match="unimplemented text action"):
        TextAction("foo").to_code()


def test_invalid_network_to_code():
    with pytest.raises(ValueError):
        mod_network_source("2001:db8::1").to_code()


def test_valid_arp_op():
    assert [valid_arp_op(op) for op in range(6)] == [False, True, True, True, True, False]


def test_valid_ipv6_label():
    assert valid_ipv6_label(0x000FFFFF) is True
    assert valid_ipv6_label(0x00100000) is False


def test_valid_vlan_vid():
    assert valid_vlan_vid(0) and valid_vlan_vid(4095)
    assert not valid_vlan_vid(-1) and not valid_vlan_vid(4096)


def test_valid_vlan_pcp():
    assert valid_vlan_pcp(0) and valid_vlan_pcp(7)
    assert not valid_vlan_pcp(-1) and not valid_vlan_pcp(8)