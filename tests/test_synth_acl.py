from vpcsynth.ir.acl import Action, deny_all_receive, deny_all_send, make_deny_internal
from vpcsynth.ir.common import Direction
from vpcsynth.ir.lookup_acl import lookup_for_acl_synth
from vpcsynth.ir.spec import (
    BlockedResources,
    Connection,
    Definitions,
    ExternalDetails,
    ResourceType,
    Spec,
    SubnetDetails,
    TrackedProtocol,
)
from vpcsynth.netset import TCPUDP, IPBlock
from vpcsynth.synth.acl import WARNING_UNSPECIFIED_ACL, ACLSynthesizer
from vpcsynth.synth.common import Explanation

SUB1 = "vpc1/sub1"
SUB2 = "vpc1/sub2"
SUB3 = "vpc1/sub3"


def _defs():
    return Definitions(
        subnets={
            SUB1: SubnetDetails(IPBlock.from_cidr("10.240.1.0/24")),
            SUB2: SubnetDetails(IPBlock.from_cidr("10.240.2.0/24")),
            SUB3: SubnetDetails(IPBlock.from_cidr("10.240.3.0/24")),
        },
        externals={"public": ExternalDetails(IPBlock.from_cidr("8.8.8.0/24"))},
    )


def _conn(defs, src, src_type, dst, dst_type, protocols):
    return Connection(
        src=lookup_for_acl_synth(defs, src_type, src),
        dst=lookup_for_acl_synth(defs, dst_type, dst),
        tracked_protocols=[TrackedProtocol(p, origin="proto") for p in protocols],
        origin="conn",
    )


def _spec(defs, connections, blocked=None):
    return Spec(connections=connections, defs=defs, blocked=BlockedResources(blocked_subnets=blocked or {}))


def test_tcp_connection_creates_request_and_response_rules():
    defs = _defs()
    tcp = TCPUDP(dst_min=443, dst_max=443)
    spec = _spec(defs, [_conn(defs, SUB1, ResourceType.SUBNET, SUB2, ResourceType.SUBNET, [tcp])])
    coll, warning = ACLSynthesizer(spec).synth()
    assert warning == ""
    reason = Explanation(internal=True, connection_origin="conn", protocol_origin="proto")
    src_rules = coll.acls["vpc1"][SUB1].internal
    assert [r.direction for r in src_rules] == [Direction.OUTBOUND, Direction.INBOUND]
    assert src_rules[0].source == defs.subnets[SUB1].cidr
    assert src_rules[0].destination == defs.subnets[SUB2].cidr
    assert src_rules[0].protocol == tcp
    assert src_rules[0].action == Action.ALLOW
    assert src_rules[0].explanation == str(reason)
    assert src_rules[1].protocol == tcp.inverse_direction()
    assert src_rules[1].explanation == str(reason.response())
    dst_rules = coll.acls["vpc1"][SUB2].internal
    assert [r.direction for r in dst_rules] == [Direction.INBOUND, Direction.OUTBOUND]
    assert dst_rules[0].source == defs.subnets[SUB1].cidr


def test_udp_has_no_response_rules():
    defs = _defs()
    udp = TCPUDP(is_tcp=False)
    spec = _spec(defs, [_conn(defs, SUB1, ResourceType.SUBNET, SUB2, ResourceType.SUBNET, [udp])])
    coll, _ = ACLSynthesizer(spec).synth()
    assert len(coll.acls["vpc1"][SUB1].internal) == 1
    assert len(coll.acls["vpc1"][SUB2].internal) == 1


def test_duplicate_connections_are_deduplicated():
    defs = _defs()
    conn = _conn(defs, SUB1, ResourceType.SUBNET, SUB2, ResourceType.SUBNET, [TCPUDP()])
    spec = _spec(defs, [conn, conn])
    coll, _ = ACLSynthesizer(spec).synth()
    assert len(coll.acls["vpc1"][SUB1].internal) == 2


def test_same_cidr_produces_no_rules():
    defs = _defs()
    spec = _spec(defs, [_conn(defs, SUB1, ResourceType.SUBNET, SUB1, ResourceType.SUBNET, [TCPUDP()])])
    coll, warning = ACLSynthesizer(spec).synth()
    assert coll.vpc_names() == []
    assert warning == ""


def test_external_connection_uses_external_rules():
    defs = _defs()
    spec = _spec(defs, [_conn(defs, SUB1, ResourceType.SUBNET, "public", ResourceType.EXTERNAL, [TCPUDP()])])
    coll, _ = ACLSynthesizer(spec).synth()
    assert list(coll.acls["vpc1"]) == [SUB1]
    acl = coll.acls["vpc1"][SUB1]
    assert acl.internal == []
    assert len(acl.external) == 2
    assert acl.external[0].explanation.startswith("External. ")
    assert acl.rules() == acl.internal + make_deny_internal() + acl.external


def test_blocked_subnets_get_deny_all_and_warning():
    defs = _defs()
    spec = _spec(defs, [], blocked={SUB3: True, SUB2: False})
    coll, warning = ACLSynthesizer(spec).synth()
    cidr = defs.subnets[SUB3].cidr
    assert coll.acls["vpc1"][SUB3].internal == [deny_all_receive(SUB3, cidr), deny_all_send(SUB3, cidr)]
    assert SUB2 not in coll.acls["vpc1"]
    assert warning == WARNING_UNSPECIFIED_ACL + SUB3


def test_single_acl_collects_subnets():
    defs = _defs()
    spec = _spec(defs, [_conn(defs, SUB1, ResourceType.SUBNET, SUB2, ResourceType.SUBNET, [TCPUDP()])])
    coll, _ = ACLSynthesizer(spec, single_acl=True).synth()
    assert coll.sorted_acl_names("vpc1") == ["vpc1/singleACL"]
    acl = coll.acls["vpc1"]["vpc1/singleACL"]
    assert acl.attached_subnets_string() == f"{SUB1}, {SUB2}"
    assert len(acl.internal) == 4