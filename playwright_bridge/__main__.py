from playwright_bridge.server import run_server

run_server()
