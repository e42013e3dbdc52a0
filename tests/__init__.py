"""
Test package for gremlin-do.

This package contains:
- test_client.py: Connection state, dispatch and public API tests
- test_command.py: Request building and script extraction tests
- test_stream.py: Result stream and adapter tests
- test_protocol.py: Frame decoding and binary packing tests
- test_transport.py: WebSocket transport tests
- test_conformance.py: Dispatch cases from conformance/*.yaml
- test_config.py: Configuration and environment tests
- test_errors.py: Error type and helper tests
- test_cli.py: Command line interface tests
- mock_server.py: Mock Gremlin Server for testing
- conftest.py: Pytest configuration and fixtures
"""
