from taskdeck.cli import main

main()
