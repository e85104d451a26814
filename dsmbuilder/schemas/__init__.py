"""JSON Schemas shipped with dsmbuilder."""
