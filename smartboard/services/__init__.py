"""
Service Organization
====================
Services are organized by their lifecycle and instantiation pattern:

**display/**
  The display core units, one instance each per DisplayRuntime.
  Examples: DataCacheStore, CountdownMonitor, RotationController

**container**
  DisplayContainer: builds the units for the web process and owns the event
  loop thread they run on.

**protocols**
  Structural interfaces for the collaborators the core talks to (backend,
  durable storage, timers, image loading, rendering).
"""
