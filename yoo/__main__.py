from yoo.cli import main

main()
