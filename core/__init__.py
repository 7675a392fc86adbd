"""
Core modules for GIS Layer Viewer.

This package contains the layer management and feature-inspection engine.

Modules:
    models: Feature, FeatureCollection and Layer data model
    exceptions: Viewer error hierarchy
    color_allocator: Deterministic palette cycling for new layers
    layer_registry: In-memory store of loaded layers
    map_builder: Map collaborator contract and its Folium implementation
    rendering_adapter: Draw layers, bind popups and click callbacks
    events: Typed interaction events and their dispatcher
    feature_inspector: Resolve map clicks to attribute displays
    auth: Login gate with static credentials
    session: Wire the components together for one login
"""

__version__ = '1.0.0'
