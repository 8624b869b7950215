from codespace_agent.cli import main

main()
