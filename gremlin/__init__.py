"""Gremlin - turn recorded user sessions into executable tests.

Subpackages:
- session: canonical session model and compressed codec
- spec: GremlinSpec state machine model and flow extraction
- generators: Playwright and Maestro test emitters
- fuzz: seeded chaos test generation
"""

__version__ = "0.1.0"
