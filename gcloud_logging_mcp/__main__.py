from gcloud_logging_mcp.cli import main

main()
