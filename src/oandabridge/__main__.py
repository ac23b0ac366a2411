from oandabridge.cli import main

main()
