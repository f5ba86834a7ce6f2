"""Example services built on the pipeline framework.

Each module defines its schemas, an in-memory collaborator and a
``build_*_pipelines`` function returning named pipelines.
"""
