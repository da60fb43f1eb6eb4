# rik

Building blocks for running workloads on a small cluster: the workload
definition model, status codes, node metrics, /30 subnet allocation,
iptables rule management, image pulling with skopeo and umoci, runc
options and configuration, and the configuration files of the node agent
and of the command-line client.

## Installation

    pip install .

For running the tests:

    pip install ".[test]"
    pytest

## Workload definitions

`rik.definition.WorkloadDefinition` reads and writes the JSON form of a
workload (`apiVersion`, `kind`, `name`, `spec`, `replicas`). The kind is a
`WorkloadKind` (`Pod` or `Function`); unknown kinds raise `ValueError`.

    from rik.definition import WorkloadDefinition

    workload = WorkloadDefinition.from_json(text)
    if workload.is_function():
        workload.set_function_port(45000)   # target port defaults to 8080
    print(workload.to_json())

On a worker node, `rik.riklet_workload.ScheduledWorkload` reads the same
document; `get_containers(instance_id)` returns copies of its containers,
each with an id of the form `<instance_id>-<name>-<5 random characters>`.

`rik.status` holds the wire codes `ResourceStatus` and
`WorkloadRequestKind`, each with a `from_code` that maps unknown codes to
`UNKNOWN` and `CREATE` respectively.

## Node metrics

    from rik.metrics import MetricsManager, Metrics

    metrics = MetricsManager().fetch()
    text = metrics.to_json()
    assert Metrics.from_json(text) == metrics

Metrics hold the CPU count and free CPU percentage, total and free memory,
and total and free space of each mounted disk, all measured with psutil.

## Subnet allocation

    from rik.ip_allocator import IpAllocator

    allocator = IpAllocator("192.168.1.0/24")   # 64 subnets of /30
    subnet = allocator.allocate_subnet()         # None when exhausted
    allocator.free_subnet(subnet)
    print(allocator.available())

## iptables rules

`rik.iptables.Iptables` drives the `iptables` binary found on `PATH`
(Linux only; elsewhere it raises `LoadFailedError`). Creating a rule that
exists raises `AlreadyExistError`; deleting one that does not raises
`AlreadyDeletedError`. With `cleanup=True`, `close()` (or leaving a `with`
block) deletes every rule created through the object.

    from rik.iptables import Chain, Iptables, Rule, Table

    rule = Rule(Chain.INPUT, Table.FILTER, "-p tcp --dport 8080 -j ACCEPT")
    with Iptables(cleanup=True) as ipt:
        ipt.create(rule)
        assert ipt.exists(rule)

## Images

`rik.image.Image.parse("alpine:latest")` splits a reference into name and
tag. `rik.image_manager.ImageManager` copies an image with skopeo
(`rik.skopeo.Skopeo`) into the images directory and unpacks it with umoci
(`rik.umoci.Umoci`) into a bundle; with the default `IfNotPresent` policy
an image whose bundle already exists is not pulled again.

    from rik.image_manager import ImageManager
    from rik.riklet_config import Configuration

    image = ImageManager(Configuration().manager).pull("alpine:latest")
    print(image.bundle)

External tools run through `rik.process.run_tool`, which raises
`ProcessSpawnError` or `ToolTimeoutError`; the wrappers raise
`ToolNotFoundError` when a binary is missing and `ToolFailedError` when
it exits unsuccessfully.

`rik.runc_args` holds `RuncConfiguration`, the `CreateArgs`, `KillArgs`
and `DeleteArgs` option sets that turn into runc command-line flags, and
`RuncContainer`, which decodes runc's JSON container state.

## Node agent configuration

`rik.riklet_cli.parse_cli_args` reads the agent's options (`--config-file`,
`--master-ip`, `-v`, `--override-config`, `--firecracker-path`,
`--kernel-path`, `--ifnet`, `--ifnet-ip`); the last four fall back to the
`FIRECRACKER_LOCATION`, `KERNEL_LOCATION`, `IFNET` and `IFNET_IP`
environment variables, and `--ifnet-ip` is required when `IFNET_IP` is
unset. `FnConfiguration.from_cli` keeps the function-related options.

    from rik.riklet_cli import parse_cli_args
    from rik.riklet_config import Configuration

    opts = parse_cli_args(["--ifnet-ip", "10.0.0.2", "-c", "/tmp/riklet.toml"])
    config = Configuration.load(opts)

`Configuration.load` reads the TOML file, or writes one with the defaults
(master at `http://127.0.0.1:4995`, images in `/var/lib/riklet/images`,
bundles in `/var/lib/riklet/bundles`, 30 second tool timeouts) when it is
missing, then creates the image and bundle directories. `--master-ip`
replaces the master address when the file is created, or when
`--override-config` is given.

## Client configuration and workload files

`rik.ctl_models.Configuration.load()` reads the file named by `RIKCONFIG`,
or `~/.rik/config.json`, then applies `RIK_`-prefixed environment
variables (for example `RIK_CLUSTER_SERVER` sets `cluster.server`):

    {
      "cluster": {
        "name": "RIK-local",
        "server": "http://127.0.0.1:5000"
      }
    }

`Workload.from_file(path)` reads a workload JSON file and raises
`WorkloadError` when it cannot be read or decoded.

## What this package does not do

It has no command-line client that talks to a controller over HTTP, no
controller and no storage of workloads or instances, no running agent that
receives scheduled workloads, and it does not start, stop or list
containers itself: it builds runc options and reads runc state, but does
not run the runc binary. It does not create tap interfaces or micro VMs.