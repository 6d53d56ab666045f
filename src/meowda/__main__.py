from meowda.cli import main

main()
