"""FloorMesh: FML floor plans to per-floor 3D meshes.

Usage:
    from floormesh.fml_parser.parser import FMLParser
    from floormesh.model_gen import ModelGenerator

    document = FMLParser().parse("house.fml")
    meshes = ModelGenerator().generate(document)
"""

__version__ = "0.1.0"
