from tapedeck.interfaces.cli import main

main()
