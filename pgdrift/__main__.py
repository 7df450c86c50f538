from pgdrift.cli import main

main()
