import dxftree


result = dxftree.export_dxf(
    "examples/data/floorplan.dxf",
    "/tmp/floorplan_out.dxf",
    types="LINE LWPOLYLINE",
    dxf_version="R2010",
)
print(result)
