import dxftree


def main() -> None:
    doc = dxftree.open("examples/data/floorplan.dxf")

    for layer in doc.get_layers():
        print(f"{layer.name}: color={layer.color_number} visible={layer.visible}")

    result = doc.resolve()
    if result.unresolved_layers:
        print("unresolved layers:", ", ".join(result.unresolved_layers))

    point = (10.0, 5.0)
    hits = [entity for entity in doc.get_entities() if entity.hit_test(point, tolerance=0.25)]
    for entity in hits:
        print("hit:", entity.dxftype, entity.layer_name, entity.resolved_color.hex)

    walls = doc.get_or_create_layer("Walls", color_number=1)
    for entity in hits:
        entity.layer_name = walls.name
    doc.resolve()
    dxftree.save(doc, "/tmp/floorplan_edited.dxf")
    print("saved: /tmp/floorplan_edited.dxf")


if __name__ == "__main__":
    main()
