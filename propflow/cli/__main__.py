from propflow.cli import main

main()
