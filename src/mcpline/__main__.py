from mcpline.cli import main

main()
