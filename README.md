# vpcsynth

`vpcsynth` turns a required-connectivity specification for a VPC into
firewall configuration (network ACLs or security groups), and reduces
the number of rules in existing security groups.

It is a library: everything is done through Python objects.

## Installation

```
pip install .
```

Use `pip install .[test]` to get the test dependencies, then run the
tests with `pytest`.

## What is in the package

- `vpcsynth.netset` — immutable set types and protocols:
  `IntervalSet`, `IPBlock` (IPv4 addresses), `ICMPSet`, `CubeProduct`,
  and the protocol values `TCPUDP`, `ICMP` and `AnyProtocol`, plus
  `cidr_all()`, `all_ports()`, `all_icmp_codes()` and `all_icmp_set()`.
- `vpcsynth.ir.spec` — the specification: `Spec`, `Connection`,
  `ConnectedResource`, `NamedAddrs`, `TrackedProtocol`, `ResourceType`,
  `Definitions` (with `ConfigDefs`, `SubnetDetails`, `NifDetails`,
  `InstanceDetails`, `VPEDetails`, `VPEReservedIPsDetails`,
  `SegmentDetails`, `CidrSegmentDetails`, `ExternalDetails`) and
  `BlockedResources`; scoping helpers `scoping_components`,
  `vpc_from_scoped_resource` and `change_scoping`.
- `vpcsynth.ir.lookup_acl.lookup_for_acl_synth` and
  `vpcsynth.ir.lookup_sg.lookup_for_sg_synth` — resolve a named resource
  of a given `ResourceType` into a `ConnectedResource`, caching the result
  on its details. An unknown name raises `ResourceNotFoundError` (a
  `LookupError`).
- `vpcsynth.ir.acl` — `ACLRule`, `ACL`, `ACLCollection`, `Packet` and the
  rule builders `allow_send`, `allow_receive`, `deny_all_send`,
  `deny_all_receive` and `make_deny_internal`.
- `vpcsynth.ir.sg` — `SGName`, `SGRule`, `SG` and `SGCollection`.
- `vpcsynth.ir.common` — `Direction` and the abstract `Writer`.
- `vpcsynth.synth` — `ACLSynthesizer` and `SGSynthesizer`.
- `vpcsynth.optimize` — `SGOptimizer` and `ACLOptimizer`.

## Synthesis

Build a `Spec` holding the `Connection` objects and the `Definitions`
they refer to; resolve connection endpoints with the lookup function
that matches the kind of firewall you want. Then run a synthesizer:

```python
from vpcsynth.synth.acl import ACLSynthesizer

collection, warning = ACLSynthesizer(spec, single_acl=False).synth()
for vpc in collection.vpc_names():
    for name in collection.sorted_acl_names(vpc):
        acl = collection.acls[vpc][name]
        rules = acl.rules()
```

With `single_acl=True` one ACL per VPC (named `<vpc>/singleACL`) is
attached to all of its subnets; otherwise each subnet gets its own.
When an ACL has external rules, deny rules between the private ranges
(10.0.0.0/8, 172.16.0.0/12, 192.168.0.0/16) are placed between its
internal and external rules.

`SGSynthesizer(spec).synth()` returns an `SGCollection` in the same way,
with one security group per internal endpoint.

The warning names the blocked subnets (for ACLs) or the blocked
instances and VPEs (for security groups), that is, those marked in the
spec's `BlockedResources`; the generated firewalls for them block all
traffic. The warning is an empty string when there are none.

Resources are scoped by their VPC, as in `test-vpc1/subnet3`.

## Optimization

```python
from vpcsynth.optimize.sg.optimizer import SGOptimizer

optimized = SGOptimizer(sg_collection, "test-vpc1/vsi1").optimize()
```

The security groups are changed in place and the collection is
returned. With an empty name every security group in the collection is
optimized; a name may be scoped by its VPC. A `LookupError` is raised
when a named security group cannot be found. The outcome for each
security group is logged at INFO level on the
`vpcsynth.optimize.sg.optimizer` logger. Rules produced by the
optimizer have empty explanations.

`ACLOptimizer(collection, name).optimize()` returns the ACL collection
unchanged.

## What the package does not do

- It reads no configuration or specification files: `Definitions` and
  `Spec` objects must be built by the caller.
- It writes no output formats. `vpcsynth.ir.common.Writer` only defines
  `write_acl` and `write_sg`; implement it and pass an instance to a
  collection's `write` method.
- It has no command-line interface.