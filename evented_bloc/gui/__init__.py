# evented_bloc/gui - Kivy adapters. Importing this package imports Kivy.
