from screenshot_mcp.cli import main

main()
