import time

from svcdep.MANAGERS.resolution_engine import ResolutionEngine
from svcdep.MODELS.service_instance import ServiceInstance
from svcdep.MODELS.stack_config import StackConfig
from svcdep.PARSERS.stack_parser import StackParser
from svcdep.REGISTRY.service_catalog import ServiceCatalog
from svcdep.RUNNERS.cycle_detector import CycleDetector
from svcdep.RUNNERS.dependency_graph import GraphBuilder


def chain_catalog(length):
    raw = {}
    for i in range(length):
        raw[f"service_{i}"] = {
            "provides": [f"cap{i}"],
            "requires": [f"cap{i - 1}"] if i else [],
        }
    return ServiceCatalog.from_dict(raw)


def test_long_chain():
    """
    A 2000 service chain is deeper than the default recursion limit.
    """
    length = 2000
    catalog = chain_catalog(length)
    names = list(reversed(catalog.names()))
    services = {
        name: ServiceInstance(name=name, port=2000 + i, data_dir=f"/srv/{name}")
        for i, name in enumerate(names)
    }

    start_time = time.time()
    report = ResolutionEngine(catalog).resolve(StackConfig(services=services))
    end_time = time.time()

    print(f"Resolved {length} services in {end_time - start_time:.2f}s")
    assert report.fatal == []
    assert report.startup_order == [f"service_{i}" for i in range(length)]


def test_long_cycle():
    length = 2000
    raw = {
        f"service_{i}": {"provides": [f"cap{i}"], "requires": [f"cap{(i + 1) % length}"]}
        for i in range(length)
    }
    catalog = ServiceCatalog.from_dict(raw)
    graph = GraphBuilder(catalog).build(catalog.names())

    cycle = CycleDetector().detect_cycle(graph)
    assert cycle is not None
    assert len(cycle) == length


def test_large_config_parsing():
    parser = StackParser(context={})

    # Generate a large stack file
    content = "services:\n"
    for i in range(1000):
        content += f"  service_{i}:\n"
        content += f"    port: {2000 + i}\n"
        content += f"    data_dir: /srv/service_{i}\n"

    start_time = time.time()
    config = parser.parse_from_string(content)
    report = ResolutionEngine().resolve(config)
    end_time = time.time()

    assert len(config.services) == 1000
    assert report.fatal == []
    assert len(report.startup_order) == 1000
    assert end_time - start_time < 10.0
