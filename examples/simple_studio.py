#!/usr/bin/env python3
"""
Simple Studio Example
Lays out a small project studio, racks the outboard gear, wires it up,
prints the bill of materials and saves the project.
"""

import logging
from pathlib import Path
import sys
sys.path.append(str(Path(__file__).parent.parent))

from studioflow.core.catalog import Catalog
from studioflow.core.project import StudioProject
from studioflow.models import Position
from studioflow.persistence.project_persistence import ProjectPersistence

logging.basicConfig(level=logging.INFO)

GEAR = [
    {
        "id": "mackie-1202", "name": "Mackie 1202VLZ4", "product_model": "Mackie 1202VLZ4",
        "category": "Mixers", "dimensions": {"width": 0.3, "height": 0.25},
        "ports": [
            {"id": "main_l", "name": "Main L", "direction": "output", "connector": "XLR",
             "category": "balanced", "gender": "plug"},
            {"id": "main_r", "name": "Main R", "direction": "output", "connector": "XLR",
             "category": "balanced", "gender": "plug"},
        ],
    },
    {
        "id": "genelec-8030c", "name": "Genelec 8030C", "product_model": "Genelec 8030C",
        "category": "Speakers", "dimensions": {"width": 0.3, "height": 0.4},
        "ports": [
            {"id": "in", "name": "Input", "direction": "input", "connector": "XLR",
             "category": "balanced", "gender": "socket"},
        ],
    },
    {
        "id": "rack-12u", "name": "12U Rack", "product_model": "Gator 12U", "category": "Racks",
        "dimensions": {"width": 0.6, "height": 0.6}, "is_rack": True, "rack_capacity": 12,
    },
    {
        "id": "dbx-160", "name": "dbx 160", "product_model": "dbx 160A", "category": "Dynamics",
        "dimensions": {"width": 0.48, "height": 0.3}, "rack_units": 2,
    },
]


def create_simple_studio(output_path: str):
    print("Creating Simple Studio Example...")
    print("=" * 50)

    catalog = Catalog.from_records(GEAR)
    project = StudioProject()
    project.notifier.subscribe(lambda n: print(f"   [{n.level.value}] {n.message}"))

    # 1. Place gear on the plan
    print("\n1. Placing equipment")
    mixer = project.add_instance(catalog.get("mackie-1202"), 2.0, 1.0)["data"]["id"]
    left = project.add_instance(catalog.get("genelec-8030c"), 0.5, 0.2)["data"]["id"]
    right = project.add_instance(catalog.get("genelec-8030c"), 3.5, 0.2)["data"]["id"]
    rack = project.add_instance(catalog.get("rack-12u"), 4.5, 2.0)["data"]["id"]
    project.rotate_instance(left, 20)
    project.rotate_instance(right, -20)

    # 2. Drop another piece of gear from the catalog (lands on the mixer)
    print("\n2. Dropping a second monitor")
    dropped = project.drop_template(
        catalog.get("genelec-8030c").model_dump_json(), Position(x=100, y=50), (800, 600)
    )
    project.remove_instance(dropped["data"]["id"])

    # 3. Rack the compressor
    print("\n3. Mounting outboard gear")
    project.mount_from_template(catalog.get("dbx-160"), rack, 1)
    print(f"   Free 1U slots: {project.racks.available_positions(rack, 1)}")

    # 4. Wire the mixer to the monitors
    print("\n4. Connecting")
    project.connect(mixer, "main_l", left, "in")
    project.connect(mixer, "main_r", right, "in")
    project.connect(mixer, "main_l", right, "in")

    # 5. Bill of materials
    print("\n5. Bill of materials")
    bom = project.bill_of_materials()
    for line in bom.equipment:
        print(f"   {line.quantity} x {line.name} ({line.category})")
    for line in bom.cables:
        print(f"   {line.name}: {line.cable_type}, {line.length}m")
    print(f"   Total cable: {bom.total_cable_length}m")

    # 6. Save
    path = ProjectPersistence().save(project, output_path)
    print(f"\n6. Saved to {path}")
    return project


if __name__ == "__main__":
    create_simple_studio("/tmp/example_projects/simple_studio/project.json")
