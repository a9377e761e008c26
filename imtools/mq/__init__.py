"""Kafka configuration, TLS setup and context message headers."""