"""Client for a hosted log service: projects, logstores, collection configs and LZ4 log upload."""

__version__ = "0.1.0"