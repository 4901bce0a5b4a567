from releaselog.cli import main

main()
