"""
The filesystem every new session starts from.

A small Unix-like tree: a populated home directory for `user`, a guest
account, a few files under /etc and /var, and manual pages for the
documented commands under /usr/share/man/man1.
"""

from .filesystem import (
    FileSystemState, HOME_PATH, make_directory, make_file
)


BASHRC = """\
# ~/.bashrc: read when a memshell session starts

# Aliases
alias ll='ls -la'
alias la='ls -a'
alias l='ls'

# Environment
export EDITOR=vi
"""

README = """\
Welcome to memshell!

Everything here lives in memory:
- a hierarchical filesystem
- Unix-like commands with pipes and redirection
- aliases and environment variables
- tab completion

Try these commands:
- ls -la
- cat documents/notes.md
- mkdir test && cd test
- echo "Hello World" > hello.txt
- cat hello.txt | grep Hello
"""

NOTES = """\
# memshell notes

## Redirection
echo "content" > file.txt
echo "more content" >> file.txt
wc -l < file.txt

## Chaining
mkdir -p build && cd build || echo "could not enter build"
"""

EXAMPLE_JS = """\
// Example JavaScript file
function greet(name) {
  return `Hello, ${name}!`;
}

console.log(greet("memshell"));
"""

TODO = """\
Project TODOs:

[ ] Add more commands
[x] Pipes and redirection
[x] Aliases
"""

SECRET = """\
This is a hidden file.

Files whose names start with a dot are only listed by `ls -a`.
"""

PASSWD = """\
root:x:0:0:root:/root:/bin/bash
user:x:1000:1000:User,,,:/home/user:/bin/bash
guest:x:1001:1001:Guest User,,,:/home/guest:/bin/bash
"""

HOSTS = """\
127.0.0.1\tlocalhost
127.0.1.1\tmemshell
"""

VERSION = """\
memshell 1.0.0
In-memory Unix-like environment
"""

SYSTEM_LOG = """\
[info] memshell started
[info] filesystem loaded
"""

MAN_PAGES = {
    'ls': ('list directory contents', 'ls [-a] [-l] [FILE]...',
           '-a  do not ignore entries starting with .\n       -l  use a long listing format'),
    'cd': ('change the working directory', 'cd [DIR]',
           'With no DIR, change to the home directory.'),
    'cat': ('concatenate files and print them', 'cat [FILE]...',
            'With no FILE, read standard input.'),
    'grep': ('print lines that match a pattern', 'grep [-i] [-v] [-n] [-c] PATTERN [FILE]...',
             '-i  ignore case\n       -v  select non-matching lines\n'
             '       -n  prefix line numbers\n       -c  print only a count of matching lines'),
    'alias': ('define or display aliases', "alias [NAME[='COMMAND']]...",
              'With no arguments, print all aliases.'),
    'echo': ('display a line of text', 'echo [-n] [STRING]...',
             '-n  do not output the trailing newline'),
}


def _man_page(name: str, summary: str, synopsis: str, description: str) -> str:
    header = f"{name.upper()}(1)"
    return (f"{header:<40}User Commands\n\n"
            f"NAME\n       {name} - {summary}\n\n"
            f"SYNOPSIS\n       {synopsis}\n\n"
            f"DESCRIPTION\n       {description}\n")


def create_default_tree():
    """Build the default root directory node."""
    man_pages = [make_file(f"{name}.1", _man_page(name, *page))
                 for name, page in MAN_PAGES.items()]

    return make_directory('/', [
        make_directory('home', [
            make_directory('user', [
                make_directory('documents', [
                    make_file('readme.txt', README),
                    make_file('notes.md', NOTES),
                    make_directory('projects', [
                        make_file('example.js', EXAMPLE_JS),
                        make_file('todo.txt', TODO),
                    ]),
                ]),
                make_directory('downloads'),
                make_file('.bashrc', BASHRC),
                make_file('.secret', SECRET, permissions='-rw-------'),
            ]),
            make_directory('guest', [
                make_file('welcome.txt', 'Welcome, guest!\n', permissions='-r--r--r--'),
            ]),
        ]),
        make_directory('etc', [
            make_file('hostname', 'memshell\n'),
            make_file('passwd', PASSWD),
            make_file('hosts', HOSTS),
            make_file('version', VERSION, permissions='-r--r--r--'),
        ]),
        make_directory('var', [
            make_directory('log', [
                make_file('system.log', SYSTEM_LOG),
            ]),
        ]),
        make_directory('tmp'),
        make_directory('usr', [
            make_directory('bin'),
            make_directory('share', [
                make_directory('man', [
                    make_directory('man1', man_pages),
                ]),
            ]),
        ]),
        make_directory('root', permissions='drwx------'),
    ])


def create_default_filesystem() -> FileSystemState:
    """A fresh default tree with the working directory at /home/user."""
    return FileSystemState(root=create_default_tree(), current_path=list(HOME_PATH))
